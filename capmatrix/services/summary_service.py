"""Natural-language analysis of the grid through an external LLM."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx
from openai import OpenAI, OpenAIError

from capmatrix.core.config import Settings
from capmatrix.models.grid import GridSnapshot
from capmatrix.services.matrix import get_score

logger = logging.getLogger(__name__)

MISSING_KEY_TEXT = "API key is missing. Set SUMMARY_API_KEY to enable analysis."
FAILURE_TEXT = "Failed to generate analysis. Please try again later."
EMPTY_TEXT = "No analysis generated."

PROMPT_TEMPLATE = """Act as a senior cybersecurity analyst.
Analyze the following JSON data representing a capability comparison of different
endpoint protection and antivirus products.

Data:
{data}

Please provide:
1. A brief summary of the landscape based on these scores.
2. A "Best for..." recommendation for each product (e.g. Best for Performance, Best for Protection).
3. An objective critique of the trade-offs (e.g. high security vs high resource usage).

Format the output in clean Markdown. Keep it concise but professional."""


@dataclass(frozen=True, slots=True)
class SummaryResult:
    text: str
    fallback: bool
    generated_at: datetime


def build_request(snapshot: GridSnapshot) -> dict[str, Any]:
    """Request payload: ordered dimension names and per-subject scores by dimension name."""

    return {
        "dimensions": [dimension.name for dimension in snapshot.dimensions],
        "subjects": [
            {
                "name": subject.name,
                "scores": {
                    dimension.name: get_score(subject, dimension.id) for dimension in snapshot.dimensions
                },
            }
            for subject in snapshot.subjects
        ],
    }


class SummaryGenerator:
    """Boundary to the chat-completions API. Never raises to the caller."""

    def __init__(self, settings: Settings, client: Any | None = None) -> None:
        self.settings = settings
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.settings.summary_api_key,
                base_url=self.settings.summary_base_url,
                timeout=httpx.Timeout(self.settings.summary_timeout_seconds),
            )
        return self._client

    def generate(self, snapshot: GridSnapshot) -> SummaryResult:
        now = datetime.now(timezone.utc)
        if self._client is None and not self.settings.summary_api_key:
            logger.warning("Summary requested without SUMMARY_API_KEY configured")
            return SummaryResult(text=MISSING_KEY_TEXT, fallback=True, generated_at=now)

        prompt = PROMPT_TEMPLATE.format(data=json.dumps(build_request(snapshot), ensure_ascii=False, indent=2))
        try:
            response = self._get_client().chat.completions.create(
                model=self.settings.summary_model,
                messages=[{"role": "user", "content": prompt}],
            )
            text = response.choices[0].message.content if response.choices else None
        except (OpenAIError, httpx.HTTPError) as exc:
            logger.warning("Summary generation failed: %s", exc)
            return SummaryResult(text=FAILURE_TEXT, fallback=True, generated_at=now)

        if not text or not text.strip():
            logger.warning("Summary generation returned no text")
            return SummaryResult(text=EMPTY_TEXT, fallback=True, generated_at=now)
        return SummaryResult(text=text.strip(), fallback=False, generated_at=datetime.now(timezone.utc))


class SummaryBoard:
    """Holds the latest summary result, separate from the grid state."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: SummaryResult | None = None

    @property
    def latest(self) -> SummaryResult | None:
        with self._lock:
            return self._latest

    def publish(self, result: SummaryResult) -> None:
        with self._lock:
            self._latest = result
