"""Concrete ``TextClassifier`` implementations.

    RuleBasedClassifier — deterministic, no network
    LLMClassifier       — OpenAI-compatible chat-completions endpoint

``build_classifier`` picks one by name so deployments can switch with a
single setting.
"""

from __future__ import annotations

from priorauth_rulesets.classifiers.llm import LLMClassifier
from priorauth_rulesets.classifiers.rule_based import RuleBasedClassifier
from priorauth_rulesets.interfaces import TextClassifier


def build_classifier(
    kind: str,
    *,
    llm_base_url: str | None = None,
    llm_model: str | None = None,
    llm_api_key: str | None = None,
    llm_timeout: float = 10.0,
) -> TextClassifier:
    """Return the classifier named *kind* (``rule_based`` or ``llm``).

    Raises:
        ValueError: for an unknown kind, or ``llm`` without a base URL/model.
    """
    if kind == "rule_based":
        return RuleBasedClassifier()
    if kind == "llm":
        if not llm_base_url or not llm_model:
            raise ValueError("llm classifier requires LLM_BASE_URL and LLM_MODEL")
        return LLMClassifier(
            base_url=llm_base_url,
            model=llm_model,
            api_key=llm_api_key,
            timeout=llm_timeout,
        )
    raise ValueError(f"Unknown classifier: {kind!r} (expected 'rule_based' or 'llm')")


__all__ = ["LLMClassifier", "RuleBasedClassifier", "build_classifier"]
