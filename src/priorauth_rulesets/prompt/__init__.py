"""Prompt rendering for the LLM classifier.

Provides ``PromptManager``, a Jinja2-based template engine that renders
option-matching and intake-extraction requests into LLM-ready prompt
strings with JSON response format instructions.
"""

from priorauth_rulesets.prompt.manager import PromptManager

__all__ = ["PromptManager"]
