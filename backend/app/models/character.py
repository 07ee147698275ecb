"""Character data models."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

REQUIRED_CHARACTER_FIELDS: tuple[str, ...] = (
    "name",
    "title",
    "persona",
    "relationship",
    "greeting",
    "scenario",
    "exampleConversation",
)


class ConversationExchange(BaseModel):
    """One user/character message pair of the example dialogue."""

    model_config = ConfigDict(frozen=True)

    user: str
    character: str

    @field_validator("user", "character")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be empty")
        return value


class Character(BaseModel):
    """The generated character artifact returned to the client.

    Immutable once constructed. Serialize with ``model_dump(by_alias=True)``
    to get the camelCase keys the client expects.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    persona: str = Field(..., min_length=1)
    relationship: str = Field(..., min_length=1)
    greeting: str = Field(..., min_length=1)
    scenario: str = Field(..., min_length=1)
    example_conversation: tuple[ConversationExchange, ...] = Field(
        ..., alias="exampleConversation", min_length=1
    )
    original_description: str = Field(..., alias="originalDescription", min_length=1)


class CharacterGenerateRequest(BaseModel):
    """Body of POST /api/character/generate."""

    description: str = Field(..., min_length=10, max_length=1000)
    relationship: str = Field(..., min_length=5, max_length=200)
    url: Optional[HttpUrl] = None


class CharacterExtractRequest(BaseModel):
    """Body of POST /api/character/extract."""

    url: HttpUrl
