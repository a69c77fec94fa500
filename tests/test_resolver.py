"""DrugResolver: corrections, exact tier, fuzzy tier and tie-breaking."""

import pytest

from priorauth_rulesets.constants import MatchSettings
from priorauth_rulesets.models.schema import DrugRecord
from priorauth_rulesets.resolver import DrugResolver


@pytest.fixture(scope="module")
def resolver(store):
    return DrugResolver(store.drugs, store.corrections)


class TestExactTier:
    def test_brand_name(self, resolver):
        result = resolver.resolve("ozempic")
        assert result.resolved
        assert result.drug.id == "ozempic"
        assert result.confidence == 1.0
        assert result.alternatives == []

    def test_case_and_whitespace_insensitive(self, resolver):
        assert resolver.resolve("  HUMIRA ").drug.id == "humira"

    def test_generic_name(self, resolver):
        assert resolver.resolve("adalimumab").drug.id == "humira"

    def test_common_name(self, resolver):
        assert resolver.resolve("xeljanz xr").drug.id == "xeljanz"

    def test_multi_word_name(self, resolver):
        result = resolver.resolve("Rinvoq IBD")
        assert result.drug.id == "rinvoq_ibd"
        assert result.confidence == 1.0


class TestCorrections:
    def test_correction_applied_before_matching(self, resolver):
        result = resolver.resolve("manjaro")
        assert result.drug.id == "mounjaro"
        assert result.corrected_query == "mounjaro"
        assert result.confidence == 1.0

    def test_unknown_name_passes_through(self, resolver):
        assert resolver.correct("aspirin") == "aspirin"
        assert resolver.resolve("ozempic").corrected_query is None


class TestFuzzyTier:
    def test_close_misspelling_accepted(self, resolver):
        result = resolver.resolve("humiera")
        assert result.drug.id == "humira"
        assert 0.8 <= result.confidence < 1.0

    def test_near_miss_offered_as_alternative(self, resolver):
        # "entivo" is not in the correction table and scores ~0.71 against
        # Entyvio: below the accept bar, above the suggestion bar.
        result = resolver.resolve("entivo")
        assert not result.resolved
        assert [a.id for a in result.alternatives] == ["entyvio"]
        assert result.alternatives[0].confidence == pytest.approx(0.7143, abs=1e-4)

    def test_nothing_close(self, resolver):
        result = resolver.resolve("acetaminophen")
        assert not result.resolved
        assert result.alternatives == []

    def test_empty_query(self, resolver):
        result = resolver.resolve("   ")
        assert not result.resolved
        assert result.confidence == 0.0

    def test_alternatives_capped(self):
        drugs = [
            DrugRecord(id=f"d{i}", name=f"drugab{i}", generic_name=f"g{i}", question_set="qs")
            for i in range(6)
        ]
        result = DrugResolver(drugs).resolve("drugabx")
        # Each scores 6/7; the first is accepted, the rest are capped at 3.
        assert result.drug.id == "d0"
        assert len(result.alternatives) == 3


class TestTieBreaking:
    def test_first_declared_drug_wins(self):
        drugs = [
            DrugRecord(id="alpha", name="Zorvax", generic_name="aaa", question_set="qs"),
            DrugRecord(id="beta", name="Zorvix", generic_name="bbb", question_set="qs"),
        ]
        # "zorvox" is one substitution from both names.
        result = DrugResolver(drugs).resolve("zorvox")
        assert result.drug.id == "alpha"
        assert [a.id for a in result.alternatives] == ["beta"]

        reversed_result = DrugResolver(list(reversed(drugs))).resolve("zorvox")
        assert reversed_result.drug.id == "beta"


class TestLengthTolerance:
    def test_far_length_uses_stricter_bar(self):
        drugs = [DrugRecord(id="x", name="Abcdefghijklmnopqrst", generic_name="zz", question_set="qs")]
        # 4 characters short: similarity is 0.80, which would clear the
        # normal accept bar but not the far one.
        result = DrugResolver(drugs).resolve("abcdefghijklmnop")
        assert not result.resolved
        assert [a.id for a in result.alternatives] == ["x"]

    def test_custom_settings(self):
        drugs = [DrugRecord(id="x", name="Entyvio", generic_name="vedolizumab", question_set="qs")]
        lenient = MatchSettings(drug_strict=0.7)
        assert DrugResolver(drugs, settings=lenient).resolve("entivo").drug.id == "x"


class TestCatalogOverride:
    def test_override_replaces_bound_catalog(self, resolver, store):
        formulary = [store.get_drug("humira"), store.get_drug("entyvio")]
        assert resolver.resolve("ozempic", drugs=formulary).drug is None
        assert resolver.resolve("humira", drugs=formulary).drug.id == "humira"
        # the bound catalog is untouched
        assert resolver.resolve("ozempic").drug.id == "ozempic"

    def test_corrections_still_apply(self, resolver, store):
        result = resolver.resolve("manjaro", drugs=[store.get_drug("mounjaro")])
        assert result.drug.id == "mounjaro"
        assert result.corrected_query == "mounjaro"

    def test_override_order_breaks_ties(self):
        alpha = DrugRecord(id="alpha", name="Zorvax", generic_name="aaa", question_set="qs")
        beta = DrugRecord(id="beta", name="Zorvix", generic_name="bbb", question_set="qs")
        resolver = DrugResolver([alpha, beta])
        assert resolver.resolve("zorvox", drugs=[beta, alpha]).drug.id == "beta"

    def test_empty_override_resolves_nothing(self, resolver):
        result = resolver.resolve("ozempic", drugs=[])
        assert result.drug is None
        assert result.alternatives == []
