"""
Translation of generated page copy.

Short strings and whole pages are translated with Claude and cached
through LLMCache under the "translation" service (7 day TTL). Every
translation is checked afterwards: empty or untouched output, lost
{{placeholders}} and an implausible length all lower the confidence.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from seo_brain.analyzer.client import ClaudeClient
from seo_brain.cache.llm_cache import LLMCache, NullCache
from seo_brain.database import repository as repo
from seo_brain.errors import ContentValidationError, GenerationError, NotFoundError
from seo_brain.integrations.rate_limit import TokenBucket
from seo_brain.output.parser import parse_llm_json
from seo_brain.output.schemas import TranslationPayload

logger = logging.getLogger(__name__)

CACHE_SERVICE = "translation"

LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "nl": "Dutch",
    "ru": "Russian",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "ar": "Arabic",
}

TRANSLATION_SYSTEM = (
    "You are a professional translator for a local business website. "
    "Translate accurately and keep the marketing tone natural for native speakers. "
    "Keep every {{placeholder}} exactly as written. "
    'Reply ONLY with JSON: {"translation": "...", "confidence": 0.0-1.0}'
)

PLACEHOLDER_RE = re.compile(r"\{\{[^}]+\}\}")

PAGE_TEXT_FIELDS = ("title", "meta_description", "h1", "ai_intro", "recruitment_section")


@dataclass
class TranslationCheck:
    is_valid: bool
    confidence: float
    issues: List[str] = field(default_factory=list)


@dataclass
class TranslationResult:
    text: str
    source_locale: str
    target_locale: str
    confidence: float = 1.0
    issues: List[str] = field(default_factory=list)
    cached: bool = False

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "source_locale": self.source_locale,
            "target_locale": self.target_locale,
            "confidence": self.confidence,
            "is_valid": self.is_valid,
            "issues": self.issues,
            "cached": self.cached,
        }


def language_name(locale: str) -> str:
    """'es' -> 'Spanish'. Raises ValueError for locales we do not translate to."""
    try:
        return LANGUAGE_NAMES[locale]
    except KeyError:
        raise ValueError(f"Unsupported locale: {locale!r}") from None


def build_translation_prompt(
    text: str,
    target_locale: str,
    source_locale: str = "en",
    context: Optional[str] = None,
) -> str:
    source = language_name(source_locale)
    target = language_name(target_locale)
    context_line = f"\nCONTEXT: {context}\n" if context else ""

    return f"""Translate the following text from {source} to {target}.
{context_line}
TEXT:
{text}

Return JSON with the translation and your confidence (0.0-1.0)."""


def validate_translation(original: str, translated: str, confidence: float = 0.8) -> TranslationCheck:
    """Score a translation. Each issue multiplies the confidence down."""
    if not translated or not translated.strip():
        return TranslationCheck(is_valid=False, confidence=0.0, issues=["Translation is empty"])

    issues = []

    if translated.strip() == original.strip():
        issues.append("Translation is identical to the original")
        confidence *= 0.3

    if len(PLACEHOLDER_RE.findall(original)) != len(PLACEHOLDER_RE.findall(translated)):
        issues.append("Placeholder count mismatch")
        confidence *= 0.7

    ratio = len(translated) / max(len(original), 1)
    if ratio > 3 or ratio < 0.3:
        issues.append(f"Unusual length ratio: {ratio:.2f}")
        confidence *= 0.8

    return TranslationCheck(is_valid=not issues, confidence=confidence, issues=issues)


class Translator:
    """
    Claude-backed translator with read-through caching.

    Usage:
        translator = Translator(claude, cache=cache)
        result = await translator.translate("Fast local printing", "es")
    """

    def __init__(
        self,
        llm: ClaudeClient,
        cache: Optional[LLMCache] = None,
        llm_limiter: Optional[TokenBucket] = None,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ):
        self.llm = llm
        self.cache = cache or NullCache()
        self.llm_limiter = llm_limiter
        self.temperature = temperature
        self.max_tokens = max_tokens

    def _options(self, source_locale: str, target_locale: str) -> Dict[str, Any]:
        return {
            "model": self.llm.model,
            "system": TRANSLATION_SYSTEM,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "source": source_locale,
            "target": target_locale,
        }

    async def _call_llm(self, prompt: str) -> str:
        if self.llm_limiter:
            await self.llm_limiter.acquire()

        response = await self.llm.analyze(
            prompt,
            system=TRANSLATION_SYSTEM,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        if not response.success:
            raise GenerationError(response.error or "Translation call failed", service=CACHE_SERVICE)
        return response.content

    async def translate(
        self,
        text: str,
        target_locale: str,
        source_locale: str = "en",
        context: Optional[str] = None,
    ) -> TranslationResult:
        """
        Translate one string.

        Same-locale and blank input come back unchanged without a call.

        Raises:
            ValueError: unsupported locale
            GenerationError: the Claude call failed
            ContentValidationError: the reply was not the expected JSON
        """
        language_name(source_locale)
        language_name(target_locale)

        if source_locale == target_locale or not text.strip():
            return TranslationResult(text=text, source_locale=source_locale, target_locale=target_locale)

        prompt = build_translation_prompt(text, target_locale, source_locale, context)
        options = self._options(source_locale, target_locale)

        payload = None
        cached = await self.cache.get(CACHE_SERVICE, prompt, options)
        if cached is not None:
            try:
                payload = parse_llm_json(cached, TranslationPayload)
            except ContentValidationError:
                logger.warning("Ignoring cached translation that no longer validates")

        from_cache = payload is not None
        if payload is None:
            raw = await self._call_llm(prompt)
            payload = parse_llm_json(raw, TranslationPayload)
            await self.cache.set(CACHE_SERVICE, prompt, raw, options=options)

        check = validate_translation(text, payload.translation, payload.confidence)
        if check.issues:
            logger.warning(f"Translation to {target_locale} flagged: {'; '.join(check.issues)}")

        return TranslationResult(
            text=payload.translation,
            source_locale=source_locale,
            target_locale=target_locale,
            confidence=check.confidence,
            issues=check.issues,
            cached=from_cache,
        )

    async def translate_many(
        self,
        texts: List[str],
        target_locale: str,
        source_locale: str = "en",
        context: Optional[str] = None,
    ) -> List[TranslationResult]:
        """Translate in order. Pacing comes from the LLM limiter."""
        results = []
        for text in texts:
            results.append(await self.translate(text, target_locale, source_locale, context))
        return results

    async def translate_page(
        self,
        page_id: str,
        target_locale: str,
        source_locale: str = "en",
    ) -> Dict[str, Any]:
        """
        Translate the copy of a stored page. Nothing is written back.

        Returns:
            Page fields in the target language, plus the lowest confidence
            and any issues found

        Raises:
            NotFoundError, ValueError, GenerationError, ContentValidationError
        """
        page = await asyncio.to_thread(repo.get_page, page_id)
        if not page:
            raise NotFoundError(f"Page {page_id} not found")

        context = f"City landing page for {page['slug']}"
        results: List[TranslationResult] = []
        translated: Dict[str, Any] = {
            "page_id": page_id,
            "source_locale": source_locale,
            "target_locale": target_locale,
        }

        for name in PAGE_TEXT_FIELDS:
            if page.get(name):
                result = await self.translate(page[name], target_locale, source_locale, context)
                translated[name] = result.text
                results.append(result)

        benefits = await self.translate_many(page.get("ai_benefits") or [], target_locale, source_locale, context)
        translated["ai_benefits"] = [r.text for r in benefits]
        results.extend(benefits)

        faqs = []
        for faq in page.get("faqs") or []:
            question = await self.translate(faq["question"], target_locale, source_locale, context)
            answer = await self.translate(faq["answer"], target_locale, source_locale, context)
            faqs.append({"question": question.text, "answer": answer.text})
            results.extend([question, answer])
        translated["faqs"] = faqs

        translated["confidence"] = min((r.confidence for r in results), default=1.0)
        translated["issues"] = [issue for r in results for issue in r.issues]

        logger.info(
            f"Translated {page_id} to {target_locale}: {len(results)} strings, "
            f"confidence {translated['confidence']:.2f}"
        )
        return translated
