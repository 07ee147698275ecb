"""Image API router."""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.dependencies import get_wizard_service
from app.api.responses import error_response, success_response
from app.core.errors import WizardError
from app.models.image import ImageGenerateRequest
from app.services.wizard import CharacterWizardService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/image", tags=["image"])


@router.post("/generate")
async def generate_image(
    body: ImageGenerateRequest,
    service: CharacterWizardService = Depends(get_wizard_service),
) -> JSONResponse:
    """Generate an avatar image for previously generated character fields."""
    try:
        result = await service.generate_image(body)
    except WizardError as exc:
        logger.error(
            "generate_image failed",
            exc_info=True,
            extra={"component": "ImageRouter", "error_type": type(exc).__name__},
        )
        return error_response(500, "Failed to generate image", exc)
    return success_response(result.model_dump(by_alias=True))
