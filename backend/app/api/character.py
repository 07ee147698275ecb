"""Character API router."""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.dependencies import get_wizard_service
from app.api.responses import error_response, success_response
from app.core.errors import WizardError
from app.models.character import CharacterExtractRequest, CharacterGenerateRequest
from app.services.wizard import CharacterWizardService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/character", tags=["character"])


@router.post("/generate")
async def generate_character(
    body: CharacterGenerateRequest,
    service: CharacterWizardService = Depends(get_wizard_service),
) -> JSONResponse:
    """Generate a character from a description and optional reference URL.

    A failing URL enrichment does not fail the request; any generation
    failure returns HTTP 500 with a generic message.
    """
    try:
        character = await service.generate_character(body)
    except WizardError as exc:
        logger.error(
            "generate_character failed",
            exc_info=True,
            extra={"component": "CharacterRouter", "error_type": type(exc).__name__},
        )
        return error_response(500, "Failed to generate character", exc)
    return success_response(character.model_dump(mode="json", by_alias=True))


@router.post("/extract")
async def extract_character(
    body: CharacterExtractRequest,
    service: CharacterWizardService = Depends(get_wizard_service),
) -> JSONResponse:
    """Generate a character from the content behind a URL.

    The relationship label is defaulted; extraction failure is fatal here.
    """
    try:
        character = await service.character_from_url(str(body.url))
    except WizardError as exc:
        logger.error(
            "extract_character failed",
            exc_info=True,
            extra={"component": "CharacterRouter", "error_type": type(exc).__name__},
        )
        return error_response(500, "Failed to extract character from URL", exc)
    return success_response(character.model_dump(mode="json", by_alias=True))
