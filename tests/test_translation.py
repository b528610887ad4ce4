"""
Tests for page translation.

These tests verify:
- Translation checks (empty, untouched, placeholders, length)
- Prompt construction and locale validation
- Caching under the translation service with its 7 day TTL
- Error handling for failed and malformed replies
- Whole-page translation of a stored page
"""

import json
from datetime import timedelta

import pytest

from seo_brain.database import get_page
from seo_brain.errors import ContentValidationError, GenerationError, NotFoundError
from seo_brain.generator import (
    CityPageGenerator,
    Translator,
    build_translation_prompt,
    validate_translation,
)

from conftest import failed_response, make_llm, ok_response

MAIN_IMAGE = "https://blob.example.com/main.png"


def source_text(prompt: str) -> str:
    return prompt.split("TEXT:\n", 1)[1].split("\n\nReturn JSON", 1)[0]


def prefixing_responder(prompt):
    """Translate by tagging the source text."""
    return ok_response(json.dumps({
        "translation": f"ES {source_text(prompt)}",
        "confidence": 0.9,
    }))


# =============================================================================
# CHECKS AND PROMPTS
# =============================================================================

class TestValidateTranslation:
    """Test validate_translation()."""

    def test_good_translation(self):
        check = validate_translation("Fast flyer printing", "Impresión rápida de volantes", 0.9)

        assert check.is_valid
        assert check.confidence == 0.9
        assert check.issues == []

    def test_empty_translation(self):
        check = validate_translation("Fast flyer printing", "  ")
        assert not check.is_valid
        assert check.confidence == 0.0

    def test_untouched_text(self):
        check = validate_translation("Seattle", "Seattle", 1.0)

        assert check.issues == ["Translation is identical to the original"]
        assert check.confidence == pytest.approx(0.3)

    def test_lost_placeholder(self):
        check = validate_translation("Hello {{name}}, order today", "Hola, pide hoy", 1.0)

        assert "Placeholder count mismatch" in check.issues
        assert check.confidence == pytest.approx(0.7)

    def test_unusual_length(self):
        check = validate_translation("Order now", "Haga su pedido ahora mismo y reciba envío gratis", 1.0)

        assert check.issues[0].startswith("Unusual length ratio")
        assert check.confidence == pytest.approx(0.8)


class TestTranslationPrompt:
    """Test build_translation_prompt()."""

    def test_languages_and_context(self):
        prompt = build_translation_prompt("Order now", "es", context="City landing page")

        assert prompt.startswith("Translate the following text from English to Spanish.")
        assert "CONTEXT: City landing page" in prompt
        assert "TEXT:\nOrder now\n" in prompt

    def test_unsupported_locale(self):
        with pytest.raises(ValueError):
            build_translation_prompt("Order now", "xx")


# =============================================================================
# TRANSLATOR
# =============================================================================

class TestTranslator:
    """Test Translator.translate()."""

    @pytest.mark.asyncio
    async def test_translates_and_caches(self, cache, fake_redis):
        llm = make_llm(lambda prompt: ok_response(
            '{"translation": "Volantes rápidos en Seattle", "confidence": 0.9}'
        ))
        translator = Translator(llm, cache=cache)

        first = await translator.translate("Fast flyers in Seattle", "es")
        second = await translator.translate("Fast flyers in Seattle", "es")

        assert first.text == second.text == "Volantes rápidos en Seattle"
        assert first.confidence == 0.9
        assert (first.cached, second.cached) == (False, True)
        assert llm.analyze.await_count == 1

        [key] = fake_redis.store
        assert key.startswith("llm:translation:")
        assert fake_redis.ttls[key] == timedelta(days=7)

    @pytest.mark.asyncio
    async def test_call_uses_low_temperature(self, cache):
        llm = make_llm(lambda prompt: ok_response('{"translation": "Hola"}'))

        result = await Translator(llm, cache=cache).translate("Hello", "es")

        assert result.confidence == 0.8
        assert llm.analyze.await_args.kwargs["temperature"] == 0.3
        assert llm.analyze.await_args.kwargs["max_tokens"] == 1000

    @pytest.mark.asyncio
    async def test_same_locale_is_passthrough(self, cache):
        llm = make_llm()

        result = await Translator(llm, cache=cache).translate("Fast flyers", "en")

        assert result.text == "Fast flyers"
        assert result.is_valid
        llm.analyze.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_untouched_reply_is_flagged(self, cache):
        llm = make_llm(lambda prompt: ok_response('{"translation": "Seattle", "confidence": 1.0}'))

        result = await Translator(llm, cache=cache).translate("Seattle", "es")

        assert not result.is_valid
        assert result.confidence == pytest.approx(0.3)

    @pytest.mark.asyncio
    async def test_failed_call_raises(self, cache):
        translator = Translator(make_llm(lambda prompt: failed_response()), cache=cache)

        with pytest.raises(GenerationError) as exc_info:
            await translator.translate("Fast flyers", "es")

        assert exc_info.value.service == "translation"

    @pytest.mark.asyncio
    async def test_malformed_reply_is_not_cached(self, cache, fake_redis):
        translator = Translator(make_llm(lambda prompt: ok_response("Volantes rápidos")), cache=cache)

        with pytest.raises(ContentValidationError):
            await translator.translate("Fast flyers", "es")

        assert fake_redis.store == {}


class TestTranslatePage:
    """Test Translator.translate_page()."""

    @pytest.mark.asyncio
    async def test_translates_stored_page(self, llm, images, cache, seattle, product_spec, campaign_id):
        generated = await CityPageGenerator(llm, images, cache=cache).generate(
            seattle, product_spec, campaign_id, MAIN_IMAGE
        )
        translator_llm = make_llm(prefixing_responder)
        translator = Translator(translator_llm, cache=cache)

        translated = await translator.translate_page(generated.page_id, "es")

        assert translated["target_locale"] == "es"
        assert translated["h1"] == "ES Premium Flyers in Seattle, WA"
        assert translated["ai_benefits"][0] == "ES Seattle benefit number 1"
        assert translated["faqs"][0] == {"question": "ES Seattle question 1?", "answer": "ES Answer 1."}
        assert len(translated["faqs"]) == 15
        assert "recruitment_section" not in translated
        assert translated["confidence"] == 0.9
        assert translated["issues"] == []
        assert translator_llm.analyze.await_count == 4 + 10 + 30

        assert get_page(generated.page_id)["h1"] == "Premium Flyers in Seattle, WA"

    @pytest.mark.asyncio
    async def test_unknown_page(self, db, cache):
        translator = Translator(make_llm(prefixing_responder), cache=cache)

        with pytest.raises(NotFoundError):
            await translator.translate_page("missing", "es")
