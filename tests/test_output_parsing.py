"""
Tests for LLM output parsing and validation.

Claude's JSON answers arrive bare, fenced, or wrapped in prose. These
tests pin down what is tolerated and what is rejected.
"""

import json

import pytest

from seo_brain.errors import ContentValidationError
from seo_brain.output import (
    BenefitsPayload,
    FAQsPayload,
    ImprovementOptionsPayload,
    WinnerPatternPayload,
    extract_json_object,
    parse_llm_json,
)

from conftest import benefits_json, faqs_json, options_json, pattern_json


class TestExtractJsonObject:
    """Test extract_json_object()."""

    def test_bare_json(self):
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_fenced_json(self):
        text = 'Here you go:\n```json\n{"a": 1}\n```\nEnjoy!'
        assert extract_json_object(text) == {"a": 1}

    def test_fence_without_language(self):
        assert extract_json_object('```\n{"a": [1, 2]}\n```') == {"a": [1, 2]}

    def test_json_surrounded_by_prose(self):
        text = 'Sure! {"benefits": ["x"]} Let me know if you need more.'
        assert extract_json_object(text) == {"benefits": ["x"]}

    def test_empty_response(self):
        with pytest.raises(ContentValidationError):
            extract_json_object("   ")

    def test_no_json(self):
        with pytest.raises(ContentValidationError) as exc_info:
            extract_json_object("I cannot help with that.")
        assert exc_info.value.raw_output == "I cannot help with that."

    def test_truncated_json(self):
        with pytest.raises(ContentValidationError):
            extract_json_object('{"faqs": [{"question": "Q?", "answer": "A')

    def test_top_level_array_rejected(self):
        with pytest.raises(ContentValidationError):
            extract_json_object('["a", "b"]')


class TestContentPayloads:
    """Exact item counts for page content."""

    def test_ten_benefits(self):
        payload = parse_llm_json(benefits_json(10), BenefitsPayload)
        assert len(payload.benefits) == 10

    @pytest.mark.parametrize("count", [9, 11])
    def test_wrong_benefit_count(self, count):
        with pytest.raises(ContentValidationError):
            parse_llm_json(benefits_json(count), BenefitsPayload)

    def test_blank_benefit_rejected(self):
        benefits = [f"benefit {i}" for i in range(9)] + ["   "]
        with pytest.raises(ContentValidationError):
            parse_llm_json(json.dumps({"benefits": benefits}), BenefitsPayload)

    def test_fifteen_faqs(self):
        payload = parse_llm_json(faqs_json(15), FAQsPayload)
        assert len(payload.faqs) == 15
        assert payload.faqs[0].question == "Seattle question 1?"

    def test_fourteen_faqs_rejected(self):
        with pytest.raises(ContentValidationError):
            parse_llm_json(faqs_json(14), FAQsPayload)

    def test_faq_missing_answer_rejected(self):
        faqs = [{"question": f"Q{i}?", "answer": "A."} for i in range(14)]
        faqs.append({"question": "Q15?"})
        with pytest.raises(ContentValidationError):
            parse_llm_json(json.dumps({"faqs": faqs}), FAQsPayload)


class TestAnalysisPayloads:
    """Winner pattern and improvement option shapes."""

    def test_winner_pattern_aliases(self):
        payload = parse_llm_json(pattern_json(), WinnerPatternPayload)

        assert payload.pattern_name == "Local urgency with deep FAQ"
        assert payload.content_structure.faq_count == 15
        dumped = payload.content_structure.model_dump(by_alias=True)
        assert dumped["benefitsCount"] == 10
        assert dumped["tone"] == "friendly expert"

    def test_winner_pattern_missing_structure(self):
        data = json.loads(pattern_json())
        del data["contentStructure"]
        with pytest.raises(ContentValidationError):
            parse_llm_json(json.dumps(data), WinnerPatternPayload)

    def test_improvement_options(self):
        payload = parse_llm_json(options_json(), ImprovementOptionsPayload)
        assert payload.option_b.action == "Rewrite intro and benefits"
        assert payload.option_c.estimated_impact == "+10-15 performance points"

    def test_confidence_out_of_range(self):
        data = json.loads(options_json())
        data["optionA"]["confidence"] = 140
        with pytest.raises(ContentValidationError):
            parse_llm_json(json.dumps(data), ImprovementOptionsPayload)

    def test_too_few_pros(self):
        data = json.loads(options_json())
        data["optionB"]["pros"] = ["only one"]
        with pytest.raises(ContentValidationError):
            parse_llm_json(json.dumps(data), ImprovementOptionsPayload)
