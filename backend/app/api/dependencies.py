"""FastAPI dependencies shared by the routers."""
from fastapi import HTTPException, Request

from app.services.wizard import CharacterWizardService


def get_wizard_service(request: Request) -> CharacterWizardService:
    """FastAPI dependency: retrieve CharacterWizardService from app.state.

    Returns HTTP 503 if the service was not initialized at startup.
    """
    svc: CharacterWizardService | None = getattr(
        request.app.state, "wizard_service", None
    )
    if svc is None:
        raise HTTPException(
            status_code=503,
            detail="Service not initialized. Please try again later.",
        )
    return svc
