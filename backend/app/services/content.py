"""Content extraction service backed by the Exa contents API."""
from typing import Any, Optional

import httpx

from app.core.errors import ConfigurationError, ExtractionError
from app.core.logging import setup_logging
from app.models.content import ContentResult

logger = setup_logging("content")

EXA_CONTENTS_URL = "https://api.exa.ai/contents"
# Live crawls (livecrawl="fallback") can take well over httpx's 5 s default.
REQUEST_TIMEOUT_SECONDS = 30.0
MAX_CONTENT_LENGTH = 5000
TRUNCATION_MARKER = "..."

SUMMARY_QUERY = "Summarize who or what this page is about in under 100 words."
HIGHLIGHT_SENTENCES = 3
HIGHLIGHTS_PER_URL = 3


def flatten_result(result: ContentResult) -> str:
    """Combine text, summary and highlights into one bounded text blob.

    The result is at most MAX_CONTENT_LENGTH characters, followed by
    TRUNCATION_MARKER when anything was cut.
    """
    content = result.text or ""
    if result.summary:
        content += f"\n\nSummary: {result.summary}"
    highlights = [h for h in result.highlights if h and h.strip()]
    if highlights:
        bullets = "\n".join(f"- {h.strip()}" for h in highlights)
        content += f"\n\nKey points:\n{bullets}"

    if len(content) > MAX_CONTENT_LENGTH:
        return content[:MAX_CONTENT_LENGTH] + TRUNCATION_MARKER
    return content


class ContentExtractor:
    """Fetches and normalizes third-party page content for enrichment.

    Failures are raised as ExtractionError and never retried; the caller
    decides whether to continue without enrichment.
    """

    def __init__(
        self,
        api_key: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self._transport = transport

    def _build_payload(self, urls: list[str]) -> dict[str, Any]:
        return {
            "urls": urls,
            "text": True,
            "summary": {"query": SUMMARY_QUERY},
            "highlights": {
                "numSentences": HIGHLIGHT_SENTENCES,
                "highlightsPerUrl": HIGHLIGHTS_PER_URL,
            },
            "livecrawl": "fallback",
        }

    async def _fetch(self, urls: list[str]) -> list[ContentResult]:
        """Call the contents API and parse its `results` array.

        Raises:
            ExtractionError: Missing key, transport, HTTP status or parse failure.
        """
        if not self.api_key:
            raise ExtractionError("not configured") from ConfigurationError(
                "EXA_API_KEY is not set"
            )

        try:
            async with httpx.AsyncClient(
                timeout=REQUEST_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.post(
                    EXA_CONTENTS_URL,
                    json=self._build_payload(urls),
                    headers={"x-api-key": self.api_key},
                )
                response.raise_for_status()
                body = response.json()
            results = body.get("results") or []
            return [ContentResult.model_validate(item) for item in results]
        except Exception as exc:
            raise ExtractionError(f"content extraction failed: {exc}") from exc

    async def extract(self, url: str) -> str:
        """Extract a single bounded text blob for `url`.

        Raises:
            ExtractionError: On any failure, including an empty result set.
        """
        results = await self._fetch([url])
        if not results:
            raise ExtractionError("no content found")

        content = flatten_result(results[0])
        if not content.strip():
            raise ExtractionError("no content found")
        logger.info(
            "Extracted %d characters from %s",
            len(content),
            url,
            extra={"component": "ContentExtractor"},
        )
        return content

    async def extract_many(self, urls: list[str]) -> list[ContentResult]:
        """Return the raw per-URL records for a batch of URLs."""
        if not urls:
            return []
        results = await self._fetch(urls)
        logger.info(
            "Extracted %d records for %d urls",
            len(results),
            len(urls),
            extra={"component": "ContentExtractor"},
        )
        return results
