"""
Script to seed a demo account with sample strain reviews.

Uses the configured document store, so DATABASE_URL must point at a real
database. Prints a custom token that signs in as the demo user via
POST /api/auth/token.
"""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from strain_tracker.core.config import settings
from strain_tracker.core.exceptions import EmailInUseException
from strain_tracker.schemas.review import ReviewInput
from strain_tracker.services.identity import Identity
from strain_tracker.services.runtime import build_runtime, shutdown_runtime

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demo-password"

SAMPLE_REVIEWS = [
    {
        "strain": "Blue Dream",
        "rating": 5,
        "type": "Sativa",
        "productType": "Flower",
        "terpenes": ["Myrcene", "Pinene"],
        "cost": "45.00",
        "potency": "THC 21%",
        "flavor": "Blueberry, sweet",
        "brand": "Cookies",
        "location": "Trulieve Miami",
        "effects": "Clear-headed lift, mild body calm, good for afternoon errands.",
    },
    {
        "strain": "Gelato #33",
        "rating": 4,
        "type": "Hybrid",
        "productType": "Vape",
        "terpenes": ["Limonene", "Beta-Caryophyllene"],
        "cost": "38",
        "potency": "THC 84%",
        "flavor": "Citrus, cream",
        "brand": "Connected",
        "location": "Curaleaf Tampa",
        "effects": "Relaxed and talkative, slight couch lock after the second pull.",
    },
    {
        "strain": "Northern Lights",
        "rating": 3,
        "type": "Indica",
        "productType": "Edible",
        "terpenes": ["Myrcene"],
        "cost": "20",
        "potency": "10mg",
        "flavor": "Earthy",
        "brand": "Kiva",
        "location": "Trulieve Miami",
        "effects": "Slow onset, heavy sleepiness, groggy next morning.",
    },
]


async def create_sample_data():
    """Create the demo account and its reviews."""
    runtime = await build_runtime(settings)
    try:
        try:
            identity = await runtime.provider.create_account(DEMO_EMAIL, DEMO_PASSWORD)
            print(f"✓ Created demo account {DEMO_EMAIL}")
        except EmailInUseException:
            identity = await runtime.provider.verify_password(DEMO_EMAIL, DEMO_PASSWORD)
            print(f"Demo account {DEMO_EMAIL} already exists, adding reviews to it")

        for data in SAMPLE_REVIEWS:
            form = ReviewInput.model_validate(data)
            result = await runtime.coordinator.create_review(Identity(uid=identity.uid), form)
            shared = " (shared to popular)" if result.mirrored else ""
            print(f"  - {form.strain}{shared}")

        print(f"\n✓ Created {len(SAMPLE_REVIEWS)} reviews")
        print(f"Custom token: {runtime.provider.issue_custom_token(identity.uid)}")
    finally:
        await shutdown_runtime(runtime)


async def main():
    """Main entry point."""
    await create_sample_data()


if __name__ == "__main__":
    asyncio.run(main())
