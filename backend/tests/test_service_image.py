"""Tests for ImageGenerator prompt building and response probing."""
import json
import uuid

import httpx
import pytest

from app.core.errors import ConfigurationError, ImageError
from app.models.image import ImageCharacterData, ResponseShape
from app.services.image import (
    NEGATIVE_PROMPT,
    RUNWARE_API_URL,
    ImageGenerator,
    build_prompt,
    detect_response_shape,
    resolve_style,
)

IMAGE_URL = "https://im.runware.ai/image/ws/0.5/ii/abc.png"

CHARACTER = ImageCharacterData(
    name="Barnaby Quill",
    title="The Cold Case Whisperer",
    persona="A retired homicide detective with a dry wit and three demanding cats.",
    originalDescription="A grizzled retired detective living alone with three cats.",
)


def _generator(handler, api_key: str = "runware-key") -> ImageGenerator:
    return ImageGenerator(
        api_key=api_key, model="runware:100@1", transport=httpx.MockTransport(handler)
    )


# ---------------------------------------------------------------------------
# build_prompt
# ---------------------------------------------------------------------------


class TestBuildPrompt:
    def test_contains_character_fields(self) -> None:
        prompt = build_prompt(CHARACTER, "anime style")
        assert '"Barnaby Quill"' in prompt
        assert "The Cold Case Whisperer" in prompt
        assert "dry wit" in prompt
        assert "living alone with three cats" in prompt

    def test_style_prepended(self) -> None:
        assert build_prompt(CHARACTER, "oil painting").startswith("oil painting of ")

    def test_style_not_duplicated_when_present(self) -> None:
        character = CHARACTER.model_copy(update={"persona": "Painted as a Watercolor study."})
        prompt = build_prompt(character, "watercolor")
        assert not prompt.startswith("watercolor of")
        assert prompt.lower().count("watercolor") == 1

    @pytest.mark.parametrize("style", ["", "   ", None, "other"])
    def test_empty_resolved_style_omits_segment(self, style: object) -> None:
        prompt = build_prompt(CHARACTER, style)  # type: ignore[arg-type]
        assert prompt.startswith('"Barnaby Quill"')

    def test_persona_excerpt_is_bounded(self) -> None:
        character = CHARACTER.model_copy(update={"persona": "p" * 500, "original_description": ""})
        prompt = build_prompt(character, "")
        assert "p" * 200 in prompt
        assert "p" * 201 not in prompt

    def test_description_excerpt_is_bounded(self) -> None:
        character = CHARACTER.model_copy(update={"original_description": "d" * 800})
        prompt = build_prompt(character, "")
        assert "d" * 300 in prompt
        assert "d" * 301 not in prompt

    def test_persona_override_used(self) -> None:
        character = CHARACTER.model_copy(update={"persona": "wearing a tweed coat in the rain"})
        assert "tweed coat" in build_prompt(character, "sketch")


def test_resolve_style() -> None:
    assert resolve_style("  anime style ") == "anime style"
    assert resolve_style("other") == ""
    assert resolve_style("Other") == ""
    assert resolve_style(None) == ""


# ---------------------------------------------------------------------------
# detect_response_shape
# ---------------------------------------------------------------------------


class TestDetectResponseShape:
    def test_tasks_shape(self) -> None:
        assert detect_response_shape({"tasks": [{"imageURL": IMAGE_URL}]}) == (
            ResponseShape.tasks,
            IMAGE_URL,
        )

    def test_data_shape(self) -> None:
        body = {"data": [{"taskType": "imageInference", "imageURL": IMAGE_URL}]}
        assert detect_response_shape(body) == (ResponseShape.data, IMAGE_URL)

    def test_top_level_shape(self) -> None:
        assert detect_response_shape({"imageURL": IMAGE_URL}) == (
            ResponseShape.top_level,
            IMAGE_URL,
        )

    def test_probe_order(self) -> None:
        body = {
            "imageURL": "https://top",
            "data": [{"imageURL": "https://data"}],
            "tasks": [{"imageURL": "https://tasks"}],
        }
        assert detect_response_shape(body) == (ResponseShape.tasks, "https://tasks")

    def test_falls_through_empty_candidates(self) -> None:
        body = {"tasks": [], "data": [{"imageURL": ""}], "imageURL": IMAGE_URL}
        assert detect_response_shape(body) == (ResponseShape.top_level, IMAGE_URL)

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"data": [{"taskType": "authentication"}]},
            {"errors": [{"code": "invalidApiKey"}]},
            [{"imageURL": IMAGE_URL}],
            None,
        ],
    )
    def test_unrecognized(self, body: object) -> None:
        assert detect_response_shape(body) == (ResponseShape.unrecognized, None)


# ---------------------------------------------------------------------------
# generate_image
# ---------------------------------------------------------------------------


class TestGenerateImage:
    async def test_sends_auth_and_inference_tasks(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"data": [{"imageURL": IMAGE_URL}]})

        await _generator(handler).generate_image(CHARACTER, "anime style")

        request = captured[0]
        assert str(request.url) == RUNWARE_API_URL
        auth, inference = json.loads(request.content)
        assert auth == {"taskType": "authentication", "apiKey": "runware-key"}
        assert inference["taskType"] == "imageInference"
        assert inference["positivePrompt"] == build_prompt(CHARACTER, "anime style")
        assert inference["negativePrompt"] == NEGATIVE_PROMPT
        assert inference["width"] == 512
        assert inference["height"] == 512
        assert inference["model"] == "runware:100@1"
        assert inference["numberResults"] == 1
        assert inference["outputType"] == "URL"
        uuid.UUID(inference["taskUUID"])

    def test_negative_prompt_discourages_defects(self) -> None:
        for term in ("blurry", "deformed", "extra limbs", "bad anatomy", "poorly drawn face"):
            assert term in NEGATIVE_PROMPT

    def test_each_batch_gets_fresh_task_uuid(self) -> None:
        generator = ImageGenerator(api_key="k")
        first = generator.build_tasks("p")[1]["taskUUID"]
        second = generator.build_tasks("p")[1]["taskUUID"]
        assert first != second

    @pytest.mark.parametrize(
        "body",
        [
            {"tasks": [{"imageURL": IMAGE_URL}]},
            {"data": [{"imageURL": IMAGE_URL}]},
            {"imageURL": IMAGE_URL},
        ],
    )
    async def test_returns_url_for_every_known_shape(self, body: dict) -> None:
        generator = _generator(lambda request: httpx.Response(200, json=body))
        assert await generator.generate_image(CHARACTER, "sketch") == IMAGE_URL

    async def test_unrecognized_response_fails(self) -> None:
        generator = _generator(lambda request: httpx.Response(200, json={"data": []}))
        with pytest.raises(ImageError, match="image URL not found in response"):
            await generator.generate_image(CHARACTER, "sketch")

    async def test_timeout_fails_with_timeout_cause(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ImageError, match="timed out") as exc_info:
            await _generator(handler).generate_image(CHARACTER, "sketch")
        assert isinstance(exc_info.value.__cause__, httpx.TimeoutException)

    async def test_http_error_fails_without_retry(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500, json={"errors": [{"message": "boom"}]})

        with pytest.raises(ImageError):
            await _generator(handler).generate_image(CHARACTER, "sketch")
        assert len(calls) == 1

    async def test_missing_key_fails_before_network(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        with pytest.raises(ImageError, match="not configured") as exc_info:
            await _generator(handler, api_key="").generate_image(CHARACTER, "sketch")
        assert isinstance(exc_info.value.__cause__, ConfigurationError)
