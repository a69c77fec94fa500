"""Text classifiers: rule-based matching/extraction and the LLM client.

The LLM classifier is driven through ``httpx.MockTransport`` so no network
calls are made.
"""

import json

import httpx
import pytest

from priorauth_rulesets.classifiers import build_classifier
from priorauth_rulesets.classifiers.llm import LLMClassifier
from priorauth_rulesets.classifiers.rule_based import RuleBasedClassifier, tokenize

DIABETES_OPTIONS = ["Type 1 Diabetes", "Type 2 Diabetes", "Obesity", "Other"]
SEVERITY_OPTIONS = ["Mild", "Moderate", "Severe"]
IBD_OPTIONS = ["Crohn's Disease", "Ulcerative Colitis", "Other"]


# =====================================================================
# Rule-based
# =====================================================================


class TestTokenize:
    def test_expands_abbreviations(self):
        assert tokenize("RA") == ["rheumatoid", "arthritis"]

    def test_number_words(self):
        assert tokenize("type two") == ["type", "2"]

    def test_drops_apostrophes(self):
        assert tokenize("Crohn's") == ["crohns"]


class TestRuleBasedMatch:
    @pytest.mark.asyncio
    async def test_abbreviation_single_match(self):
        verdict = await RuleBasedClassifier().match_option("Diagnosis?", DIABETES_OPTIONS, "T2DM")
        assert verdict.matched
        assert verdict.option == "Type 2 Diabetes"

    @pytest.mark.asyncio
    async def test_roman_numeral(self):
        verdict = await RuleBasedClassifier().match_option(
            "Diagnosis?", DIABETES_OPTIONS, "diabetes type ii"
        )
        assert verdict.option == "Type 2 Diabetes"

    @pytest.mark.asyncio
    async def test_several_full_matches_not_matched(self):
        verdict = await RuleBasedClassifier().match_option(
            "Severity?", SEVERITY_OPTIONS, "moderate to severe"
        )
        assert not verdict.matched
        assert verdict.option is None
        assert set(verdict.possible_matches) == {"Moderate", "Severe"}

    @pytest.mark.asyncio
    async def test_crohns_abbreviation(self):
        verdict = await RuleBasedClassifier().match_option("Diagnosis?", IBD_OPTIONS, "CD")
        assert verdict.option == "Crohn's Disease"

    @pytest.mark.asyncio
    async def test_no_overlap(self):
        verdict = await RuleBasedClassifier().match_option("Severity?", SEVERITY_OPTIONS, "blue")
        assert not verdict.matched
        assert verdict.possible_matches == []


class TestRuleBasedExtraction:
    @pytest.mark.asyncio
    async def test_full_sentence(self):
        found = await RuleBasedClassifier().extract_intake_fields(
            "Member name is john smith, born 03/15/1980, requesting Ozempic"
        )
        assert found.member_name == "John Smith"
        assert found.date_of_birth == "03/15/1980"
        assert found.drug_name == "Ozempic"

    @pytest.mark.asyncio
    async def test_iso_date(self):
        found = await RuleBasedClassifier().extract_intake_fields("DOB is 1980-03-15")
        assert found.date_of_birth == "1980-03-15"
        assert found.member_name is None

    @pytest.mark.asyncio
    async def test_bare_answer_fills_first_missing_field(self):
        found = await RuleBasedClassifier().extract_intake_fields("Humira", ["drug_name"])
        assert found.populated() == {"drug_name": "Humira"}

    @pytest.mark.asyncio
    async def test_bare_name(self):
        found = await RuleBasedClassifier().extract_intake_fields(
            "jane doe", ["member_name", "date_of_birth", "drug_name"]
        )
        assert found.member_name == "Jane Doe"

    @pytest.mark.asyncio
    async def test_nothing_found(self):
        found = await RuleBasedClassifier().extract_intake_fields("hello, how are you today?")
        assert found.populated() == {}


# =====================================================================
# LLM
# =====================================================================


def _llm(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LLMClassifier(base_url="http://llm.test/v1/", model="test-model", client=client, **kwargs)


def _reply(content):
    body = {"choices": [{"message": {"content": json.dumps(content)}}]}
    return lambda request: httpx.Response(200, json=body)


class TestLLMClassifier:
    @pytest.mark.asyncio
    async def test_request_shape(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            body = {"choices": [{"message": {"content": '{"match": null}'}}]}
            return httpx.Response(200, json=body)

        llm = _llm(handler, api_key="sk-test")
        await llm.match_option("Diagnosis?", DIABETES_OPTIONS, "sugar")

        assert seen["url"] == "http://llm.test/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "test-model"
        assert seen["body"]["response_format"] == {"type": "json_object"}
        user_prompt = seen["body"]["messages"][1]["content"]
        assert "Type 2 Diabetes" in user_prompt
        assert '"sugar"' in user_prompt

    @pytest.mark.asyncio
    async def test_confident_match(self):
        llm = _llm(_reply({"match": "Type 2 Diabetes", "confidence": 0.92, "possible_matches": []}))
        verdict = await llm.match_option("Diagnosis?", DIABETES_OPTIONS, "adult onset sugar")
        assert verdict.matched
        assert verdict.option == "Type 2 Diabetes"
        assert verdict.possible_matches == ["Type 2 Diabetes"]

    @pytest.mark.asyncio
    async def test_low_confidence_not_matched(self):
        llm = _llm(_reply({"match": "Obesity", "confidence": 0.4}))
        verdict = await llm.match_option("Diagnosis?", DIABETES_OPTIONS, "heavy")
        assert not verdict.matched
        assert verdict.option == "Obesity"

    @pytest.mark.asyncio
    async def test_ambiguous_reply(self):
        llm = _llm(_reply({
            "match": None,
            "confidence": 0.5,
            "possible_matches": ["Type 1 Diabetes", "Type 2 Diabetes"],
        }))
        verdict = await llm.match_option("Diagnosis?", DIABETES_OPTIONS, "diabetic")
        assert not verdict.matched
        assert len(verdict.possible_matches) == 2

    @pytest.mark.asyncio
    async def test_server_error_yields_no_match(self):
        llm = _llm(lambda request: httpx.Response(500, text="overloaded"))
        verdict = await llm.match_option("Diagnosis?", DIABETES_OPTIONS, "sugar")
        assert not verdict.matched
        assert verdict.possible_matches == []

    @pytest.mark.asyncio
    async def test_connection_error_yields_no_match(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        verdict = await _llm(handler).match_option("Diagnosis?", DIABETES_OPTIONS, "sugar")
        assert not verdict.matched

    @pytest.mark.asyncio
    async def test_non_json_content(self):
        body = {"choices": [{"message": {"content": "Type 2, probably"}}]}
        llm = _llm(lambda request: httpx.Response(200, json=body))
        verdict = await llm.match_option("Diagnosis?", DIABETES_OPTIONS, "sugar")
        assert not verdict.matched

    @pytest.mark.asyncio
    async def test_extract_intake_fields(self):
        llm = _llm(_reply({"member_name": "Jane Doe", "date_of_birth": "null", "drug_name": "Humira"}))
        found = await llm.extract_intake_fields("Jane Doe needs Humira", ["member_name"])
        assert found.populated() == {"member_name": "Jane Doe", "drug_name": "Humira"}

    @pytest.mark.asyncio
    async def test_extract_failure_is_empty(self):
        llm = _llm(lambda request: httpx.Response(404))
        found = await llm.extract_intake_fields("Jane Doe needs Humira")
        assert found.populated() == {}

    @pytest.mark.asyncio
    async def test_close(self):
        llm = _llm(_reply({}))
        await llm.close()
        assert llm._client.is_closed


class TestBuildClassifier:
    def test_rule_based(self):
        assert isinstance(build_classifier("rule_based"), RuleBasedClassifier)

    def test_llm_requires_url_and_model(self):
        with pytest.raises(ValueError, match="LLM_BASE_URL"):
            build_classifier("llm")

    def test_llm(self):
        classifier = build_classifier("llm", llm_base_url="http://x/v1", llm_model="m")
        assert isinstance(classifier, LLMClassifier)
        assert classifier.base_url == "http://x/v1"

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown classifier"):
            build_classifier("magic")
