"""LLMClassifier: TextClassifier backed by an OpenAI-compatible chat endpoint.

Prompts are rendered by :class:`PromptManager` and sent to
``{base_url}/chat/completions`` with a JSON response format.  Transport
errors, non-2xx responses and unparseable replies are logged and treated
as "no match" / "nothing extracted"; they never propagate to the engine.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from priorauth_rulesets.interfaces import TextClassifier
from priorauth_rulesets.models.match import IntakeExtraction, SemanticMatch
from priorauth_rulesets.prompt import PromptManager

logger = logging.getLogger(__name__)

# Below this the model's single match is treated as a suggestion only.
MIN_MATCH_CONFIDENCE = 0.7


class LLMClassifier(TextClassifier):
    """Classifier that asks a chat-completions model.

    Args:
        base_url: API root, e.g. ``https://api.openai.com/v1``
        model: model name passed through to the API
        api_key: bearer token; omitted from headers when None
        timeout: per-request timeout in seconds
        client: pre-built ``httpx.AsyncClient`` (tests inject one with a
            ``MockTransport``); when given, ``base_url``/``api_key`` are
            still used for the request path and headers
        prompts: optional PromptManager override
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
        prompts: PromptManager | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._headers = headers
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._prompts = prompts or PromptManager()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # TextClassifier
    # ------------------------------------------------------------------

    async def match_option(
        self,
        question_text: str,
        options: list[str],
        raw_answer: str,
    ) -> SemanticMatch:
        prompt = self._prompts.render_option_match(question_text, options, raw_answer)
        data = await self._complete(prompt)
        if data is None:
            return SemanticMatch()

        option = data.get("match")
        try:
            confidence = float(data.get("confidence") or 0.0)
        except (TypeError, ValueError):
            confidence = 0.0
        possible = [str(p) for p in data.get("possible_matches") or [] if p]
        if option and option not in possible:
            possible.insert(0, str(option))

        return SemanticMatch(
            matched=bool(option) and confidence >= MIN_MATCH_CONFIDENCE,
            option=str(option) if option else None,
            confidence=confidence,
            possible_matches=possible,
        )

    async def extract_intake_fields(
        self,
        text: str,
        missing: list[str] | None = None,
    ) -> IntakeExtraction:
        prompt = self._prompts.render_intake_extraction(text, missing)
        data = await self._complete(prompt)
        if data is None:
            return IntakeExtraction()

        fields = {}
        for key in ("member_name", "date_of_birth", "drug_name"):
            value = data.get(key)
            if isinstance(value, str) and value.strip() and value.strip().lower() != "null":
                fields[key] = value.strip()
        return IntakeExtraction(**fields)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _complete(self, prompt: str) -> dict[str, Any] | None:
        """POST one chat completion and return the parsed JSON object, or None."""
        payload = {
            "model": self.model,
            "temperature": 0,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": self._prompts.system_prompt},
                {"role": "user", "content": prompt},
            ],
        }
        try:
            response = await self._client.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=self._headers,
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
            data = json.loads(content)
        except httpx.HTTPError as exc:
            logger.warning("LLM request failed: %s", exc)
            return None
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("LLM response could not be parsed: %s", exc)
            return None

        if not isinstance(data, dict):
            logger.warning("LLM response is not a JSON object: %r", data)
            return None
        return data
