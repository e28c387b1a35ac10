"""Liveness and configuration check."""

from fastapi import APIRouter, Depends

from finance_tracker import __version__
from finance_tracker.api.deps import envelope, get_components
from finance_tracker.orchestrator import AppComponents


router = APIRouter(tags=["health"])


@router.get("/health")
async def health(components: AppComponents = Depends(get_components)):
    app_settings = components.settings.app
    return envelope("OK", {
        "status": "ok",
        "version": __version__,
        "environment": app_settings.app_environment,
        "storage_backend": app_settings.storage_backend,
        "assistant_mode": app_settings.assistant_mode,
    })
