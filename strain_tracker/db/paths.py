"""
Collection and document paths, namespaced by application id.
"""


class CollectionPaths:
    """Builds the store paths used for one deployment (``app_id``)."""

    def __init__(self, app_id: str):
        self.app_id = app_id

    def private_reviews(self, uid: str) -> str:
        return f"artifacts/{self.app_id}/users/{uid}/strain_reviews"

    def popular_strains(self) -> str:
        return f"artifacts/{self.app_id}/public/data/popular_strains"

    def profile_collection(self, uid: str) -> str:
        return f"artifacts/{self.app_id}/users/{uid}/profile"

    # The profile is a singleton document inside its collection
    PROFILE_DOC_ID = "data"

    def accounts(self) -> str:
        return f"artifacts/{self.app_id}/accounts"
