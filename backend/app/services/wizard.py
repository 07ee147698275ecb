"""CharacterWizardService: orchestrates one wizard request."""
from typing import TYPE_CHECKING

from app.core.errors import ExtractionError
from app.core.logging import setup_logging
from app.models.character import Character, CharacterGenerateRequest
from app.models.image import ImageGenerateRequest, ImageResult

if TYPE_CHECKING:
    from app.services.character import CharacterGenerator
    from app.services.content import ContentExtractor
    from app.services.image import ImageGenerator

logger = setup_logging("wizard")

DEFAULT_RELATIONSHIP = "someone the user has just met"


class CharacterWizardService:
    """Sequences enrichment, character generation and image generation.

    Responsibilities:
    1. Enrich the description from a reference URL (best effort)
    2. Delegate to CharacterGenerator for the structured character
    3. Delegate to ImageGenerator for the avatar URL

    Holds no per-request state: every call is a function of its inputs and
    the upstream APIs.
    """

    def __init__(
        self,
        extractor: "ContentExtractor",
        generator: "CharacterGenerator",
        image_generator: "ImageGenerator",
    ) -> None:
        self.extractor = extractor
        self.generator = generator
        self.image_generator = image_generator

    async def generate_character(self, request: CharacterGenerateRequest) -> Character:
        """Generate a character from a description and optional reference URL.

        Extraction failures are logged and the unenriched description is used.

        Raises:
            GenerationError: Character generation failed.
        """
        description = request.description
        prompt_description = description

        # --- 1. Optional enrichment ---
        if request.url is not None:
            url = str(request.url)
            try:
                extracted = await self.extractor.extract(url)
                prompt_description = (
                    f"{description}\n\nAdditional context from URL: {extracted}"
                )
            except ExtractionError as exc:
                logger.warning(
                    "Enrichment failed for %s, continuing without it: %s",
                    url,
                    exc,
                    extra={"component": "CharacterWizardService", "error_type": type(exc).__name__},
                )

        # --- 2. Generation ---
        return await self.generator.generate(
            prompt_description,
            request.relationship,
            original_description=description,
        )

    async def character_from_url(self, url: str) -> Character:
        """Generate a character purely from the content behind `url`.

        Unlike generate_character, extraction is mandatory here.

        Raises:
            ExtractionError: The URL could not be extracted.
            GenerationError: Character generation failed.
        """
        extracted = await self.extractor.extract(url)
        return await self.generator.generate(
            f"Create a character based on the following content: {extracted}",
            DEFAULT_RELATIONSHIP,
            original_description=extracted,
        )

    async def generate_image(self, request: ImageGenerateRequest) -> ImageResult:
        """Generate an avatar for previously generated character fields.

        Raises:
            ImageError: Image generation failed.
        """
        image_url = await self.image_generator.generate_image(
            request.character_data, request.style
        )
        return ImageResult(imageUrl=image_url)
