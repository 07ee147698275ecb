"""Shared test fixtures and configuration."""
from typing import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.models.character import Character
from app.models.image import ImageResult

DETECTIVE_DESCRIPTION = (
    "A grizzled retired detective living alone with three cats, "
    "solving cold cases for extra cash."
)
DETECTIVE_RELATIONSHIP = "old friend from the academy"


@pytest.fixture(autouse=True)
def set_required_env_vars(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Set upstream API keys for all tests and reset cached settings."""
    from app.core.config import get_settings

    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
    monkeypatch.setenv("EXA_API_KEY", "test-exa-key")
    monkeypatch.setenv("RUNWARE_API_KEY", "test-runware-key")
    monkeypatch.delenv("APP_ENV", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_character(**overrides: object) -> Character:
    data: dict[str, object] = {
        "name": "Barnaby Quill",
        "title": "The Cold Case Whisperer",
        "persona": "A retired homicide detective with a dry wit and three demanding cats.",
        "relationship": DETECTIVE_RELATIONSHIP,
        "greeting": "Well, look who finally remembered my number.",
        "scenario": "A cluttered kitchen table covered in old case files.",
        "exampleConversation": [
            {"user": "Still chasing ghosts?", "character": "Ghosts leave fingerprints."},
            {"user": "How are the cats?", "character": "Plotting against me, as usual."},
            {"user": "Need a hand?", "character": "Grab a file and a coffee."},
        ],
        "originalDescription": DETECTIVE_DESCRIPTION,
    }
    data.update(overrides)
    return Character(**data)  # type: ignore[arg-type]


@pytest.fixture
def character() -> Character:
    return make_character()


@pytest.fixture
def mock_service(character: Character) -> MagicMock:
    svc = MagicMock()
    svc.generate_character = AsyncMock(return_value=character)
    svc.character_from_url = AsyncMock(return_value=character)
    svc.generate_image = AsyncMock(
        return_value=ImageResult(imageUrl="https://im.runware.ai/image/abc.png")
    )
    return svc


@pytest.fixture
def client(mock_service: MagicMock) -> Iterator[TestClient]:
    from app.api.dependencies import get_wizard_service
    from app.main import app

    app.state.rate_limiter.reset()
    app.dependency_overrides[get_wizard_service] = lambda: mock_service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    app.state.rate_limiter.reset()
