from __future__ import annotations

from fastapi import APIRouter, Depends

from ..models.notes import BackendStatusResponse
from ..services.backend import backend_diagnostics
from ..state import State, get_state

router = APIRouter(tags=["backend"])


@router.get("/backend_status", response_model=BackendStatusResponse)
def v1_backend_status(state: State = Depends(get_state)) -> BackendStatusResponse:
    """Which backend is configured and whether it answers a probe prompt."""
    return BackendStatusResponse(**backend_diagnostics(state.backend, state.settings.model_name))
