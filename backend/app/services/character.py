"""Character generation service using the Gemini API."""
import json
from typing import Any, Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from app.core.errors import ConfigurationError, GenerationError
from app.core.logging import setup_logging
from app.models.character import REQUIRED_CHARACTER_FIELDS, Character

logger = setup_logging("character")

# Sampling favors diverse output so that similar descriptions do not
# produce near-duplicate characters.
TEMPERATURE = 0.9
TOP_P = 0.95
FREQUENCY_PENALTY = 0.5
PRESENCE_PENALTY = 0.5
MAX_OUTPUT_TOKENS = 2048
MIN_EXCHANGES = 3


def build_prompt(description: str, relationship: str) -> str:
    """Build the character creation instruction for the language model.

    Args:
        description: Character description, possibly enriched with URL content.
        relationship: Relationship label the model must echo back verbatim.

    Returns:
        Single prompt string requesting one JSON object.
    """
    return f"""You are a character creation assistant for an AI chat platform.
Create a detailed, original character based on the description below.

Description: {description}

Naming: invent a distinctive name that fits the character. Avoid stereotypical,
overused or generic names (for example "Luna", "Aria", "Jack", "Max",
"Elara", "Kai") and do not reuse names you have produced before.

Relationship to the user: "{relationship}"
Copy this relationship label into the "relationship" field exactly as written,
without rephrasing it.

Fields:
- name: the character's name
- title: a short, catchy title for the character
- persona: personality, background, knowledge and traits in detail
- relationship: the relationship label given above
- greeting: the first message the character sends to the user
- scenario: the setting or context of the conversation
- exampleConversation: an example dialogue of at least {MIN_EXCHANGES} exchanges

Respond with a single JSON object only, with no text before or after it, using
exactly these field names:
{{
  "name": "",
  "title": "",
  "persona": "",
  "relationship": "",
  "greeting": "",
  "scenario": "",
  "exampleConversation": [
    {{"user": "", "character": ""}}
  ]
}}
"""


def extract_json_object(text: str) -> str:
    """Return the first balanced top-level JSON object embedded in `text`.

    Scans from the first `{` while tracking nesting depth; braces inside
    string literals (including escaped quotes) are ignored.

    Raises:
        GenerationError: When no balanced object exists.
    """
    start = text.find("{")
    if start == -1:
        raise GenerationError("no JSON found")

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]

    raise GenerationError("no JSON found")


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate_character_data(data: Any) -> None:
    """Check parsed model output before building a Character.

    Checks run in order: required fields, exampleConversation type,
    exchange contents.

    Raises:
        GenerationError: On the first failed check.
    """
    if not isinstance(data, dict):
        raise GenerationError("response is not a JSON object")

    for field in REQUIRED_CHARACTER_FIELDS:
        value = data.get(field)
        if field == "exampleConversation":
            missing = not value
        else:
            missing = _is_blank(value)
        if missing:
            raise GenerationError(f"missing field: {field}")

    exchanges = data["exampleConversation"]
    if not isinstance(exchanges, list):
        raise GenerationError("must be an array")

    for exchange in exchanges:
        if not isinstance(exchange, dict):
            raise GenerationError("empty messages")
        if _is_blank(exchange.get("user")) or _is_blank(exchange.get("character")):
            raise GenerationError("empty messages")


def parse_character(
    raw_text: str,
    relationship: str,
    original_description: str,
) -> Character:
    """Turn raw model output into a validated Character.

    The relationship is pinned to the caller's label and the untouched
    description is attached as `originalDescription`.

    Raises:
        GenerationError: No JSON, invalid JSON or failed validation.
    """
    json_text = extract_json_object(raw_text)
    try:
        data = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise GenerationError(f"invalid JSON: {exc.msg}") from exc

    validate_character_data(data)

    try:
        return Character(
            name=data["name"],
            title=data["title"],
            persona=data["persona"],
            relationship=relationship,
            greeting=data["greeting"],
            scenario=data["scenario"],
            exampleConversation=[
                {"user": e["user"], "character": e["character"]}
                for e in data["exampleConversation"]
            ],
            originalDescription=original_description,
        )
    except ValidationError as exc:
        raise GenerationError(f"invalid character: {exc.error_count()} errors") from exc


class CharacterGenerator:
    """Builds the prompt, calls Gemini and validates the returned character."""

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash") -> None:
        self.api_key = api_key
        self.model = model

    async def _call_model(self, prompt: str) -> str:
        """Send `prompt` to Gemini and return the raw response text."""
        client = genai.Client(api_key=self.api_key)
        response = await client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=TEMPERATURE,
                top_p=TOP_P,
                frequency_penalty=FREQUENCY_PENALTY,
                presence_penalty=PRESENCE_PENALTY,
                max_output_tokens=MAX_OUTPUT_TOKENS,
            ),
        )
        return response.text or ""

    async def generate(
        self,
        description: str,
        relationship: str,
        original_description: Optional[str] = None,
    ) -> Character:
        """Generate a validated Character.

        Args:
            description: Text sent to the model (may include enrichment).
            relationship: Relationship label echoed into the result.
            original_description: Pre-enrichment input kept on the result;
                defaults to `description`.

        Raises:
            GenerationError: Missing key, upstream failure, parse or
                validation failure. Never retried.
        """
        if not self.api_key:
            raise GenerationError("not configured") from ConfigurationError(
                "GEMINI_API_KEY is not set"
            )

        prompt = build_prompt(description, relationship)
        try:
            raw_text = await self._call_model(prompt)
        except Exception as exc:
            raise GenerationError(f"language model call failed: {exc}") from exc

        character = parse_character(
            raw_text,
            relationship=relationship,
            original_description=original_description or description,
        )
        logger.info(
            "Generated character %r with %d exchanges",
            character.name,
            len(character.example_conversation),
            extra={"component": "CharacterGenerator"},
        )
        return character
