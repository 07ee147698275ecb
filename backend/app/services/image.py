"""Image generation service backed by the Runware task API."""
import uuid
from typing import Any, Callable, Optional

import httpx

from app.core.errors import ConfigurationError, ImageError
from app.core.logging import setup_logging
from app.models.image import ImageCharacterData, ResponseShape, StylePreset

logger = setup_logging("image")

RUNWARE_API_URL = "https://api.runware.ai/v1"
REQUEST_TIMEOUT_SECONDS = 60.0

PERSONA_EXCERPT_LENGTH = 200
DESCRIPTION_EXCERPT_LENGTH = 300

NEGATIVE_PROMPT = (
    "blurry, low quality, deformed, disfigured, extra limbs, extra fingers, "
    "mutated hands, bad anatomy, bad proportions, poorly drawn face, "
    "poorly drawn hands, watermark, text"
)
IMAGE_WIDTH = 512
IMAGE_HEIGHT = 512
INFERENCE_STEPS = 28
CFG_SCALE = 7.5


def resolve_style(style: Optional[str]) -> str:
    """Normalize the requested style; the unresolved `other` sentinel means none."""
    style = (style or "").strip()
    if style.lower() == StylePreset.other.value:
        return ""
    return style


def build_prompt(character: ImageCharacterData, style: Optional[str]) -> str:
    """Build the positive prompt for the image API.

    The style is only prepended when it does not already appear in the
    assembled prompt. An empty style omits the style segment.

    Args:
        character: Name, title, persona (or override) and original description.
        style: Preset or custom style text.

    Returns:
        Prompt string.
    """
    parts = [f'"{character.name}", {character.title}.']
    persona = character.persona.strip()
    if persona:
        parts.append(persona[:PERSONA_EXCERPT_LENGTH])
    description = character.original_description.strip()
    if description:
        parts.append(description[:DESCRIPTION_EXCERPT_LENGTH])
    prompt = " ".join(parts)

    style = resolve_style(style)
    if style and style.lower() not in prompt.lower():
        prompt = f"{style} of {prompt}"
    return prompt


def _first_image_url(items: Any) -> Optional[str]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        url = items[0].get("imageURL")
        if isinstance(url, str) and url:
            return url
    return None


def _top_level_image_url(body: Any) -> Optional[str]:
    url = body.get("imageURL")
    return url if isinstance(url, str) and url else None


# Probed in order; the first shape that resolves wins.
_SHAPE_PROBES: list[tuple[ResponseShape, Callable[[dict], Optional[str]]]] = [
    (ResponseShape.tasks, lambda body: _first_image_url(body.get("tasks"))),
    (ResponseShape.data, lambda body: _first_image_url(body.get("data"))),
    (ResponseShape.top_level, _top_level_image_url),
]


def detect_response_shape(body: Any) -> tuple[ResponseShape, Optional[str]]:
    """Classify an image API response and pull out the image URL.

    Returns:
        (shape, url); url is None only for ResponseShape.unrecognized.
    """
    if isinstance(body, dict):
        for shape, probe in _SHAPE_PROBES:
            url = probe(body)
            if url is not None:
                return shape, url
    return ResponseShape.unrecognized, None


class ImageGenerator:
    """Builds image prompts and runs the authenticate + infer task batch."""

    def __init__(
        self,
        api_key: str,
        model: str = "runware:100@1",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self._transport = transport

    def build_tasks(self, prompt: str) -> list[dict[str, Any]]:
        """Build the authentication + inference task batch for `prompt`."""
        return [
            {"taskType": "authentication", "apiKey": self.api_key},
            {
                "taskType": "imageInference",
                "taskUUID": str(uuid.uuid4()),
                "positivePrompt": prompt,
                "negativePrompt": NEGATIVE_PROMPT,
                "width": IMAGE_WIDTH,
                "height": IMAGE_HEIGHT,
                "model": self.model,
                "steps": INFERENCE_STEPS,
                "CFGScale": CFG_SCALE,
                "numberResults": 1,
                "outputType": "URL",
                "outputFormat": "PNG",
            },
        ]

    async def _call_image_api(self, tasks: list[dict[str, Any]]) -> Any:
        """POST the task batch and return the decoded JSON body.

        Raises:
            ImageError: Timeout, transport, HTTP status or decode failure.
        """
        try:
            async with httpx.AsyncClient(
                timeout=REQUEST_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.post(RUNWARE_API_URL, json=tasks)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as exc:
            raise ImageError(
                f"image API timed out after {REQUEST_TIMEOUT_SECONDS:.0f}s"
            ) from exc
        except Exception as exc:
            raise ImageError(f"image API call failed: {exc}") from exc

    async def generate_image(
        self, character: ImageCharacterData, style: Optional[str]
    ) -> str:
        """Generate one image and return its URL.

        Raises:
            ImageError: Missing key, upstream failure or unrecognized response.
                Never retried.
        """
        if not self.api_key:
            raise ImageError("not configured") from ConfigurationError(
                "RUNWARE_API_KEY is not set"
            )

        prompt = build_prompt(character, style)
        logger.debug("Image prompt: %s", prompt)

        body = await self._call_image_api(self.build_tasks(prompt))
        shape, image_url = detect_response_shape(body)
        if image_url is None:
            logger.error(
                "Unrecognized image API response: %.200s",
                body,
                extra={"component": "ImageGenerator"},
            )
            raise ImageError("image URL not found in response")

        logger.info(
            "Image generated for %r (response shape: %s)",
            character.name,
            shape.value,
            extra={"component": "ImageGenerator"},
        )
        return image_url
