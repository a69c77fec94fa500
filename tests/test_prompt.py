"""PromptManager tests — verify classifier prompt rendering.

Prompts are plain strings; tests check that they carry the inputs and the
JSON response instructions the LLM classifier relies on.
"""

import jinja2
import pytest

from priorauth_rulesets.prompt import PromptManager


@pytest.fixture
def pm():
    """Fresh PromptManager for each test."""
    return PromptManager()


class TestRenderOptionMatch:
    def test_lists_every_option(self, pm):
        prompt = pm.render_option_match(
            "What is the patient's primary diagnosis?",
            ["Type 1 Diabetes", "Type 2 Diabetes", "Other"],
            "sugar diabetes",
        )
        assert "What is the patient's primary diagnosis?" in prompt
        assert "- Type 1 Diabetes" in prompt
        assert "- Type 2 Diabetes" in prompt
        assert "- Other" in prompt

    def test_answer_json_quoted(self, pm):
        prompt = pm.render_option_match("Q?", ["A"], 'he said "maybe"')
        assert '"he said \\"maybe\\""' in prompt

    def test_response_format(self, pm):
        prompt = pm.render_option_match("Q?", ["A"], "a")
        assert '"match"' in prompt
        assert '"possible_matches"' in prompt


class TestRenderIntakeExtraction:
    def test_includes_missing_fields(self, pm):
        prompt = pm.render_intake_extraction("Jane needs Humira", ["member_name", "drug_name"])
        assert '"Jane needs Humira"' in prompt
        assert "Fields still needed: member_name, drug_name" in prompt

    def test_missing_section_omitted(self, pm):
        prompt = pm.render_intake_extraction("Jane needs Humira")
        assert "Fields still needed" not in prompt
        assert '"date_of_birth"' in prompt


class TestTemplates:
    def test_system_prompt(self, pm):
        assert "JSON" in pm.system_prompt

    def test_custom_template_dir(self, tmp_path):
        (tmp_path / "option_match.jinja2").write_text("{{ question }}|{{ options | join(',') }}")
        pm = PromptManager(template_dir=tmp_path)
        assert pm.render_option_match("Q", ["A", "B"], "x") == "Q|A,B"

    def test_strict_undefined(self, tmp_path):
        (tmp_path / "option_match.jinja2").write_text("{{ nonexistent }}")
        with pytest.raises(jinja2.UndefinedError):
            PromptManager(template_dir=tmp_path).render_option_match("Q", ["A"], "x")
