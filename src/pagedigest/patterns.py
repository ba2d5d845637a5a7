# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Pattern registry — immutable catalog of lexical and regex patterns.

Two pattern shapes share one interface (``count`` / ``found``):

  PhrasePattern — literal substring, counted by non-overlapping occurrence
  RegexPattern  — compiled regex; an invalid source degrades to a substring check

Scanners never branch on pattern shape. Whole-body patterns run against the
lower-cased body text; paragraph patterns run against original-case text.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from pagedigest import ContentType
from pagedigest.errors import PatternEvaluationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pattern variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PhrasePattern:
    """Literal phrase matcher."""

    phrase: str

    def count(self, text: str) -> int:
        return text.count(self.phrase) if self.phrase else 0

    def found(self, text: str) -> bool:
        return bool(self.phrase) and self.phrase in text


@dataclass(frozen=True, slots=True)
class RegexPattern:
    """Regex matcher. Compiled once; invalid sources fall back to ``source in text``."""

    source: str
    flags: int = 0
    _compiled: re.Pattern[str] | None = field(init=False, default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            compiled = re.compile(self.source, self.flags)
        except re.error as e:
            err = PatternEvaluationError(f"Invalid pattern {self.source!r}: {e}", source=self.source)
            logger.warning("%s; falling back to substring match", err)
            compiled = None
        object.__setattr__(self, "_compiled", compiled)

    @property
    def degraded(self) -> bool:
        return self._compiled is None

    def count(self, text: str) -> int:
        if self._compiled is None:
            return int(self.source in text)
        return sum(1 for _ in self._compiled.finditer(text))

    def found(self, text: str) -> bool:
        if self._compiled is None:
            return self.source in text
        return self._compiled.search(text) is not None

    def first_group(self, text: str) -> str | None:
        """Group 1 (or the whole match) of the first match, else None."""
        if self._compiled is None:
            return self.source if self.source in text else None
        m = self._compiled.search(text)
        if m is None:
            return None
        return m.group(1) if self._compiled.groups else m.group(0)


TextPattern = PhrasePattern | RegexPattern


def phrases(*items: str) -> tuple[PhrasePattern, ...]:
    return tuple(PhrasePattern(p) for p in items)


def regexes(*items: str, flags: int = re.IGNORECASE) -> tuple[RegexPattern, ...]:
    return tuple(RegexPattern(p, flags) for p in items)


# ---------------------------------------------------------------------------
# Schema catalog types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SchemaTypeSpec:
    """Fields and content cues for one schema.org type."""

    required: tuple[str, ...]
    valuable: tuple[str, ...]
    indicators: tuple[PhrasePattern, ...]
    implied: tuple[RegexPattern, ...] = ()  # every match counts
    local: tuple[PhrasePattern, ...] = ()  # business-locality cues
    review_opportunities: tuple[PhrasePattern, ...] = ()


@dataclass(frozen=True, slots=True)
class SchemaConflictRule:
    types: tuple[str, str]
    message: str


@dataclass(frozen=True, slots=True)
class IndustryBenchmark:
    """Typical / excellent number of implemented schema types per industry."""

    average: int
    excellent: int


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PatternRegistry:
    """Every pattern the engine matches, grouped by signal family. Pure data."""

    # Answer engine (paragraph-level, original case)
    direct_answers: tuple[PhrasePattern, ...]
    definitions: tuple[RegexPattern, ...]
    # Whole-body families (lower-cased text)
    comparisons: tuple[PhrasePattern, ...]
    pros_cons: tuple[PhrasePattern, ...]
    step_patterns: tuple[RegexPattern, ...]
    examples: tuple[PhrasePattern, ...]
    expert_signals: tuple[PhrasePattern, ...]
    freshness: tuple[PhrasePattern, ...]
    conversational: tuple[PhrasePattern, ...]
    summaries: tuple[PhrasePattern, ...]
    trust_indicators: tuple[PhrasePattern, ...]
    case_studies: tuple[PhrasePattern, ...]
    voice_search: tuple[PhrasePattern, ...]
    question_types: tuple[str, ...]
    statistics: RegexPattern
    last_updated: tuple[RegexPattern, ...]  # tried in order, first match wins
    faq_question: RegexPattern
    # Markup regions (XPath)
    faq_regions: tuple[str, ...]
    review_regions: tuple[str, ...]
    author_regions: tuple[str, ...]
    video_elements: tuple[str, ...]
    interactive_elements: tuple[str, ...]
    # Schema catalog
    schema_types: Mapping[str, SchemaTypeSpec]
    schema_conflicts: tuple[SchemaConflictRule, ...]
    industry_benchmarks: Mapping[str, IndustryBenchmark]
    # Content-type decision list
    schema_type_labels: tuple[tuple[str, ContentType], ...]
    url_rules: tuple[tuple[RegexPattern, ContentType], ...]
    body_rules: tuple[tuple[RegexPattern, ContentType], ...]

    def question_type_patterns(self) -> tuple[tuple[str, RegexPattern], ...]:
        """Whole-word matcher per question stem."""
        return tuple((q, RegexPattern(rf"\b{re.escape(q)}\b")) for q in self.question_types)


def _class_token(token: str) -> str:
    """XPath equivalent of the CSS ``.token`` class selector."""
    return f"//*[contains(concat(' ', normalize-space(@class), ' '), ' {token} ')]"


_FAQ_IMPLIED = regexes(
    r"\b(?:what|why|how|when|where|who|which)\b",
    r"\bhow (?:do|does|to|much|many)\b",
    r"\bwhat (?:is|are)\b",
    r"\bwhen (?:should|do|does|is|are)\b",
    r"\bwhy (?:is|are|choose|do|does|should)\b",
    r"\bcan (?:i|you|we)\b",
    r"\bdo (?:you|i|we)\b",
    r"\bbenefits of\b",
    r"\bdifference between\b",
    r"\bcost of\b",
)

_SCHEMA_TYPES: dict[str, SchemaTypeSpec] = {
    "Product": SchemaTypeSpec(
        required=("name", "image", "offers"),
        valuable=("brand", "aggregateRating", "review", "sku", "gtin"),
        indicators=phrases("price", "add to cart", "buy now", "in stock", "product", "shop"),
    ),
    "FAQPage": SchemaTypeSpec(
        required=("mainEntity",),
        valuable=("author", "datePublished"),
        # no bare "?": it matches nearly every page
        indicators=phrases("frequently asked", "faq", "questions", "q:", "a:"),
        implied=_FAQ_IMPLIED,
    ),
    "Article": SchemaTypeSpec(
        required=("headline", "image", "datePublished"),
        valuable=("author", "publisher", "dateModified", "articleBody"),
        indicators=phrases("posted", "published", "author", "article", "blog", "news"),
    ),
    "HowTo": SchemaTypeSpec(
        required=("name", "step"),
        valuable=("totalTime", "estimatedCost", "supply", "tool"),
        indicators=phrases("step 1", "step 2", "how to", "tutorial", "guide", "instructions"),
    ),
    "Recipe": SchemaTypeSpec(
        required=("name", "image", "recipeIngredient"),
        valuable=("nutrition", "recipeYield", "prepTime", "cookTime", "recipeCuisine"),
        indicators=phrases("ingredients", "prep time", "cook time", "servings", "recipe"),
    ),
    "LocalBusiness": SchemaTypeSpec(
        required=("name", "address"),
        valuable=("telephone", "openingHours", "priceRange", "geo"),
        indicators=phrases("hours", "location", "visit us", "call us", "address"),
        local=phrases("near me", "nearby", "local", "in ", "near "),
    ),
    "FinancialService": SchemaTypeSpec(
        required=("name",),
        valuable=("priceRange", "areaServed", "hasOfferCatalog"),
        indicators=phrases("financial", "accounting", "tax", "cfo", "bookkeeping", "advisory"),
    ),
    "ProfessionalService": SchemaTypeSpec(
        required=("name",),
        valuable=("priceRange", "areaServed", "hasOfferCatalog"),
        indicators=phrases("consulting", "services", "professional", "expert", "specialist"),
    ),
    "Service": SchemaTypeSpec(
        required=("name",),
        valuable=("provider", "areaServed", "hasOfferCatalog"),
        indicators=phrases("service", "solution", "offering", "provide", "deliver"),
    ),
    "VideoObject": SchemaTypeSpec(
        required=("name", "description", "thumbnailUrl"),
        valuable=("duration", "uploadDate", "contentUrl"),
        indicators=phrases("video", "watch", "youtube", "vimeo", "youtube.com/embed"),
    ),
    "Review": SchemaTypeSpec(
        required=("itemReviewed", "reviewRating", "author"),
        valuable=("datePublished", "reviewBody"),
        indicators=phrases("review", "rating", "stars", "feedback", "testimonial", "client", "customer"),
        review_opportunities=phrases(
            "testimonial", "case study", "success story", "client feedback", "customer story"
        ),
    ),
    "Organization": SchemaTypeSpec(
        required=("name",),
        valuable=("logo", "url", "contactPoint", "sameAs"),
        indicators=phrases("company", "about us", "contact", "founded"),
    ),
    "BreadcrumbList": SchemaTypeSpec(
        required=("itemListElement",),
        valuable=(),
        indicators=phrases("breadcrumb", ">", "/", "navigation"),
    ),
}

_SCHEMA_CONFLICTS: tuple[SchemaConflictRule, ...] = (
    SchemaConflictRule(("Article", "WebPage"), "Consider using only one - Article is more specific"),
    SchemaConflictRule(
        ("Organization", "FinancialService"), "FinancialService extends Organization - may be redundant"
    ),
    SchemaConflictRule(("LocalBusiness", "Organization"), "LocalBusiness extends Organization - use LocalBusiness"),
    SchemaConflictRule(("Product", "Service"), "Choose either Product OR Service based on what you offer"),
)

_INDUSTRY_BENCHMARKS: dict[str, IndustryBenchmark] = {
    "financial": IndustryBenchmark(average=3, excellent=6),
    "ecommerce": IndustryBenchmark(average=4, excellent=8),
    "local": IndustryBenchmark(average=2, excellent=5),
    "saas": IndustryBenchmark(average=3, excellent=7),
    "general": IndustryBenchmark(average=2, excellent=5),
}

_DATE = r"(\d{1,2}[-/]\d{1,2}[-/]\d{2,4})"

DEFAULT_REGISTRY = PatternRegistry(
    direct_answers=phrases("is defined as", "refers to", "means that", "is a type of", "can be described as"),
    definitions=regexes(r"^[\w\s]+ is\s+", r"^[\w\s]+ are\s+", r"^[\w\s]+ means\s+"),
    comparisons=phrases("vs", "versus", "compared to", "difference between", "better than"),
    pros_cons=phrases("pros and cons", "advantages", "disadvantages", "benefits", "drawbacks"),
    step_patterns=(
        RegexPattern(r"step\s+\d+", re.IGNORECASE),
        RegexPattern(r"^\d+\.", re.MULTILINE),
        RegexPattern(r"first|second|third|finally", re.IGNORECASE),
    ),
    examples=phrases("for example", "for instance", "such as", "e.g.", "including"),
    expert_signals=phrases("according to", "research shows", "studies indicate", "experts say"),
    # year numerals are added per run from the reference year
    freshness=phrases("updated", "latest", "current", "recent", "new"),
    conversational=phrases("you might wonder", "you may ask", "let me explain", "here's how"),
    summaries=phrases("in summary", "to summarize", "key takeaways", "tldr", "conclusion", "in brief"),
    trust_indicators=phrases(
        "privacy policy",
        "terms of service",
        "about us",
        "contact us",
        "testimonial",
        "certified",
        "accredited",
        "award",
    ),
    case_studies=phrases("case study", "success story", "client story", "customer story", "real-world example"),
    voice_search=phrases("near me", "how do i", "what's the best way to", "can you tell me"),
    question_types=("what", "why", "how", "when", "where", "who", "which"),
    statistics=RegexPattern(r"\d+\.?\d*\s*%|\$\s*\d+|\d+\s*(?:million|billion|thousand)", re.IGNORECASE),
    last_updated=regexes(
        r"updated:?\s*" + _DATE,
        r"last\s+modified:?\s*" + _DATE,
        r"published:?\s*" + _DATE,
    ),
    faq_question=RegexPattern(
        r"(?:^|\s)(?:what|why|how|when|where|who|which|can|do|does|is|are|should)\b[\s\S]{2,120}\?",
        re.IGNORECASE,
    ),
    faq_regions=(
        "//*[contains(@itemtype, 'FAQPage')]",
        "//*[contains(@itemtype, 'Question')]",
        "//*[@id='faq']",
        "//*[contains(@class, 'faq')]",
        "//*[contains(@class, 'question')]",
        "//*[contains(@class, 'answer')]",
    ),
    review_regions=(
        "//*[contains(@itemtype, 'Review')]",
        "//*[contains(@class, 'review')]",
        "//*[contains(@class, 'rating')]",
        "//*[contains(@class, 'testimonial')]",
        "//*[contains(@class, 'case-study')]",
    ),
    author_regions=(
        "//*[contains(@class, 'author')]",
        "//*[contains(@id, 'author')]",
        "//*[@rel='author']",
        _class_token("bio"),
    ),
    video_elements=(
        "//video",
        "//iframe[contains(@src, 'youtube')]",
        "//iframe[contains(@src, 'vimeo')]",
    ),
    interactive_elements=(
        "//button",
        "//input",
        "//select",
        "//textarea",
        "//iframe",
        "//video",
        "//audio",
        _class_token("calculator"),
        _class_token("tool"),
        _class_token("quiz"),
    ),
    schema_types=MappingProxyType(_SCHEMA_TYPES),
    schema_conflicts=_SCHEMA_CONFLICTS,
    industry_benchmarks=MappingProxyType(_INDUSTRY_BENCHMARKS),
    schema_type_labels=(
        ("Product", ContentType.PRODUCT),
        ("Article", ContentType.ARTICLE),
        ("HowTo", ContentType.TECHNICAL),
        ("FAQPage", ContentType.FAQ),
        ("LocalBusiness", ContentType.LOCAL),
        ("Recipe", ContentType.RECIPE),
        ("FinancialService", ContentType.FINANCIAL),
        ("ProfessionalService", ContentType.PROFESSIONAL),
    ),
    url_rules=(
        (RegexPattern(r"/(?:product|shop|item|buy)"), ContentType.PRODUCT),
        (RegexPattern(r"/(?:blog|article|news|post)"), ContentType.ARTICLE),
        (RegexPattern(r"/(?:docs?|documentation|guide|tutorial|how-to)"), ContentType.TECHNICAL),
        (RegexPattern(r"/(?:category|categories|collection)"), ContentType.CATEGORY),
        (RegexPattern(r"/(?:faq|questions|help)"), ContentType.FAQ),
        (RegexPattern(r"/(?:recipe|recipes)"), ContentType.RECIPE),
        (RegexPattern(r"/(?:services?|solutions?)"), ContentType.PROFESSIONAL),
    ),
    body_rules=(
        (RegexPattern(r"price|add to cart|buy now|\$\d+"), ContentType.PRODUCT),
        (RegexPattern(r"published|author|posted on|reading time"), ContentType.ARTICLE),
        (RegexPattern(r"step \d|tutorial|guide|how to|instructions"), ContentType.TECHNICAL),
        (RegexPattern(r"ingredients|prep time|servings"), ContentType.RECIPE),
        (RegexPattern(r"financial|accounting|tax|cfo"), ContentType.FINANCIAL),
    ),
)
