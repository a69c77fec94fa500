"""PromptManager — Jinja2-based prompt renderer for the LLM classifier.

Loads templates from the ``template/`` directory and renders the two
classifier tasks into prompt strings with JSON response instructions:

    option_match.jinja2       — pick the option(s) an answer refers to
    intake_extraction.jinja2  — pull identity/drug fields from free text
"""

from __future__ import annotations

import json
from pathlib import Path

import jinja2

SYSTEM_PROMPT = (
    "You assist a pharmacy prior-authorization reviewer. "
    "Always respond with a single JSON object and nothing else."
)


class PromptManager:
    """Jinja2-based prompt renderer for the LLM classifier.

    Args:
        template_dir: optional override for the template directory.
            Defaults to ``template/`` sibling of this module.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        if template_dir is None:
            template_dir = Path(__file__).parent / "template"
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=jinja2.StrictUndefined,
        )
        self._env.filters["tojson"] = lambda v: json.dumps(v, ensure_ascii=False)

    @property
    def system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def render_option_match(
        self,
        question_text: str,
        options: list[str],
        raw_answer: str,
    ) -> str:
        """Render the option-matching prompt.

        The expected response is
        ``{"match": <option or null>, "confidence": <0-1>, "possible_matches": [...]}``.
        """
        template = self._env.get_template("option_match.jinja2")
        return template.render(
            question=question_text,
            options=options,
            answer=raw_answer,
        )

    def render_intake_extraction(
        self,
        text: str,
        missing: list[str] | None = None,
    ) -> str:
        """Render the intake-extraction prompt.

        The expected response is
        ``{"member_name": ..., "date_of_birth": ..., "drug_name": ...}`` with
        null for anything not stated.
        """
        template = self._env.get_template("intake_extraction.jinja2")
        return template.render(text=text, missing=missing or [])
