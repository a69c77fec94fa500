"""RulesetStore loading and lookup against the shipped v1/ data."""

import pytest

from priorauth_rulesets.errors import DrugNotFound, GraphNotFound, InvalidQuestionSet
from priorauth_rulesets.ruleset import RulesetStore

EXPECTED_QUESTION_SETS = {
    "glp1_diabetes",
    "glp1_weight",
    "tnf_inhibitor",
    "il_psoriasis",
    "atopic_dermatitis",
    "jak_inhibitor",
    "ibd_biologic",
    "jak_ibd",
}


class TestLoad:
    def test_drug_catalog(self, store):
        assert len(store.drugs) == 15
        # Declaration order is preserved
        assert store.drugs[0].id == "ozempic"
        assert store.drugs[-1].id == "trulicity"

    def test_question_sets(self, store):
        assert set(store.question_sets) == EXPECTED_QUESTION_SETS

    def test_corrections_lowercased(self, store):
        assert store.corrections["manjaro"] == "mounjaro"
        assert all(k == k.lower() for k in store.corrections)

    def test_every_drug_has_a_question_set(self, store):
        for drug in store.drugs:
            assert store.question_set_for(drug).id == drug.question_set


class TestLookup:
    def test_get_drug(self, store):
        assert store.get_drug("humira").generic_name == "adalimumab"

    def test_get_drug_unknown(self, store):
        with pytest.raises(DrugNotFound, match="not found"):
            store.get_drug("aspirin")

    def test_get_question_set_unknown(self, store):
        with pytest.raises(GraphNotFound, match="not found"):
            store.get_question_set("nope")

    def test_errors_are_value_errors(self, store):
        with pytest.raises(ValueError):
            store.get_question_set("nope")


class TestBrokenRulesets:
    def _write(self, base, drugs_yaml, qs_yaml):
        (base / "const").mkdir(parents=True)
        (base / "rules" / "question_sets").mkdir(parents=True)
        (base / "const" / "drugs.yaml").write_text(drugs_yaml)
        (base / "rules" / "question_sets" / "qs.yaml").write_text(qs_yaml)

    def test_unknown_question_set_reference(self, tmp_path):
        self._write(
            tmp_path,
            "- {id: a, name: A, generic_name: a1, question_set: missing}\n",
            "id: qs\nname: QS\nstart: q1\nquestions:\n"
            "  - {qid: q1, question_type: text, question: 'Q?', next: {action: end}}\n",
        )
        store = RulesetStore(ruleset_dir=tmp_path)
        with pytest.raises(InvalidQuestionSet, match="unknown question set"):
            store.load()

    def test_dangling_goto(self, tmp_path):
        self._write(
            tmp_path,
            "- {id: a, name: A, generic_name: a1, question_set: qs}\n",
            "id: qs\nname: QS\nstart: q1\nquestions:\n"
            "  - {qid: q1, question_type: text, question: 'Q?', next: {action: goto, qid: q9}}\n",
        )
        with pytest.raises(InvalidQuestionSet, match="undefined question"):
            RulesetStore(ruleset_dir=tmp_path).load()

    def test_corrections_file_optional(self, tmp_path):
        self._write(
            tmp_path,
            "- {id: a, name: A, generic_name: a1, question_set: qs}\n",
            "id: qs\nname: QS\nstart: q1\nquestions:\n"
            "  - {qid: q1, question_type: text, question: 'Q?', next: {action: end}}\n",
        )
        store = RulesetStore(ruleset_dir=tmp_path)
        store.load()
        assert store.corrections == {}
        assert len(store.drugs) == 1

    def test_missing_question_set_dir(self, tmp_path):
        (tmp_path / "const").mkdir()
        (tmp_path / "const" / "drugs.yaml").write_text("[]\n")
        with pytest.raises(FileNotFoundError):
            RulesetStore(ruleset_dir=tmp_path).load()
