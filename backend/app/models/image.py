"""Image generation data models."""
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_STYLE = "realistic portrait"


class StylePreset(str, Enum):
    """Image styles offered by the wizard UI.

    `other` is a sentinel: the client replaces it with a custom style string
    before dispatch.
    """

    realistic_portrait = "realistic portrait"
    anime_style = "anime style"
    cartoon = "cartoon"
    fantasy_character = "fantasy character"
    oil_painting = "oil painting"
    watercolor = "watercolor"
    sketch = "sketch"
    character_portrait = "character portrait"
    other = "other"


class ResponseShape(str, Enum):
    """Known layouts of the image API response, plus the failure variant."""

    tasks = "tasks"
    data = "data"
    top_level = "top_level"
    unrecognized = "unrecognized"


class ImageCharacterData(BaseModel):
    """Character summary fields used to build the image prompt."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    # Either the generated persona or a caller-supplied detail override.
    persona: str
    original_description: str = Field(default="", alias="originalDescription")


class ImageGenerateRequest(BaseModel):
    """Body of POST /api/image/generate."""

    model_config = ConfigDict(populate_by_name=True)

    character_data: ImageCharacterData = Field(..., alias="characterData")
    style: str = DEFAULT_STYLE


class ImageResult(BaseModel):
    """Success payload of POST /api/image/generate."""

    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(..., alias="imageUrl")
