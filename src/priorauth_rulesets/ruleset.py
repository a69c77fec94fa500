"""RulesetStore — loads all YAML rulesets from ``v1/`` into typed models.

This is the single source of truth for reference data at runtime.  The
store is loaded once at startup and provides lookup by drug id and
question-set id.

Layout::

    v1/const/drugs.yaml                      ordered drug catalog
    v1/const/transcription_corrections.yaml  misspelling → drug name
    v1/rules/question_sets/*.yaml            one QuestionSet per file

Usage::

    store = RulesetStore()          # defaults to v1/ relative to repo root
    store.load()                    # parse and validate all YAML files

    drug = store.get_drug("ozempic")
    graph = store.get_question_set(drug.question_set)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from priorauth_rulesets.errors import DrugNotFound, GraphNotFound, InvalidQuestionSet
from priorauth_rulesets.graph import validate_question_set
from priorauth_rulesets.models.schema import DrugRecord, QuestionSet

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# RulesetStore
# ---------------------------------------------------------------------------

class RulesetStore:
    """Loads all YAML from ``v1/`` and provides typed lookup.

    Attributes populated after :meth:`load`:

        drugs          — list[DrugRecord] in catalog order
        corrections    — dict[misspelling, corrected name]
        question_sets  — dict[id, QuestionSet]
    """

    def __init__(self, ruleset_dir: str | Path | None = None) -> None:
        if ruleset_dir is None:
            ruleset_dir = find_repo_root() / "v1"
        self._base = Path(ruleset_dir)

        # Populated by load()
        self.drugs: list[DrugRecord] = []
        self.corrections: dict[str, str] = {}
        self.question_sets: dict[str, QuestionSet] = {}
        self._drug_index: dict[str, DrugRecord] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse and validate all YAML files under the ruleset directory.

        Call this once at startup.  Raises ``FileNotFoundError`` if expected
        YAML files are missing and ``InvalidQuestionSet`` if a graph is
        malformed or a drug references an unknown question set.
        """
        self._load_constants()
        self._load_question_sets()
        self._check_references()
        logger.info(
            "RulesetStore loaded: %d drugs, %d corrections, %d question sets",
            len(self.drugs),
            len(self.corrections),
            len(self.question_sets),
        )

    def _load_constants(self) -> None:
        """Load v1/const/*.yaml into typed models."""
        const_dir = self._base / "const"

        self.drugs = [DrugRecord(**raw) for raw in load_yaml(const_dir / "drugs.yaml")]
        self._drug_index = {}
        for drug in self.drugs:
            if drug.id in self._drug_index:
                raise InvalidQuestionSet(f"Duplicate drug id: {drug.id}")
            self._drug_index[drug.id] = drug

        # Corrections are optional
        corrections_path = const_dir / "transcription_corrections.yaml"
        if corrections_path.exists():
            raw = load_yaml(corrections_path) or {}
            self.corrections = {str(k).lower().strip(): str(v) for k, v in raw.items()}

    def _load_question_sets(self) -> None:
        """Load every v1/rules/question_sets/*.yaml as a QuestionSet."""
        qs_dir = self._base / "rules" / "question_sets"
        if not qs_dir.is_dir():
            raise FileNotFoundError(f"Missing question set directory: {qs_dir}")

        self.question_sets = {}
        for path in sorted(qs_dir.glob("*.yaml")):
            graph = QuestionSet(**load_yaml(path))
            if graph.id in self.question_sets:
                raise InvalidQuestionSet(f"Duplicate question set id: {graph.id} ({path.name})")
            validate_question_set(graph)
            self.question_sets[graph.id] = graph
            logger.debug("Loaded question set %s (%d questions)", graph.id, len(graph.questions))

    def _check_references(self) -> None:
        for drug in self.drugs:
            if drug.question_set not in self.question_sets:
                raise InvalidQuestionSet(
                    f"Drug {drug.id} references unknown question set {drug.question_set!r}"
                )

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def get_drug(self, drug_id: str) -> DrugRecord:
        """Return a drug by id.

        Raises:
            DrugNotFound: if no such drug exists.
        """
        drug = self._drug_index.get(drug_id)
        if drug is None:
            raise DrugNotFound(drug_id)
        return drug

    def get_question_set(self, question_set_id: str) -> QuestionSet:
        """Return a question set by id.

        Raises:
            GraphNotFound: if no such question set exists.
        """
        graph = self.question_sets.get(question_set_id)
        if graph is None:
            raise GraphNotFound(question_set_id)
        return graph

    def question_set_for(self, drug: DrugRecord) -> QuestionSet:
        """Return the question set governing *drug*."""
        return self.get_question_set(drug.question_set)
