"""
Generative-text helper endpoints.
"""
from fastapi import APIRouter, Depends

from strain_tracker.api.deps import get_runtime, get_session
from strain_tracker.schemas.ai import StrainNameRequest, StrainNameResponse
from strain_tracker.services.runtime import Runtime
from strain_tracker.services.session import ClientSession


router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post("/strain-names", response_model=StrainNameResponse)
async def suggest_strain_names(
    request: StrainNameRequest,
    runtime: Runtime = Depends(get_runtime),
    session: ClientSession = Depends(get_session),
):
    """
    Three name ideas from flavor and effects notes. Service failures come
    back as an empty list with the fallback message in ``raw``.
    """
    session.require_identity()
    return await runtime.coordinator.suggest_strain_names(request.effects, request.flavor)
