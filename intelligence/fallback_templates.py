"""Offline brief builders for the synthesis fallback ladder (no external calls)."""

from __future__ import annotations

import re
import zlib
from typing import Dict, List, Sequence

from core import (
    BriefSource,
    ContentBrief,
    ContentStructure,
    EnrichedTrend,
    SeoFields,
)


TEMPLATE_CONFIDENCE = 60
KEYWORD_CONFIDENCE = 45
GENERIC_CONFIDENCE = 30

MAX_KEYWORDS = 8
MAX_TAGS = 12
SEO_DESCRIPTION_LIMIT = 155

_TOPIC_ALIASES = {
    "investing": "investing",
    "finance": "investing",
    "business": "investing",
    "crypto": "investing",
    "technology": "technology",
    "tech": "technology",
    "science": "technology",
    "health": "health",
    "wellness": "health",
    "fitness": "health",
    "tourism": "tourism",
    "travel": "tourism",
    "education": "education",
}

TOPIC_KEYWORDS: Dict[str, List[str]] = {
    "investing": ["portfolio", "stocks", "ETF", "dividends", "risk", "returns", "diversification", "compound"],
    "education": ["learning", "study", "skills", "knowledge", "tutorial", "tips", "methods", "success"],
    "tourism": ["travel", "destinations", "culture", "adventure", "budget", "planning", "experiences", "guide"],
    "technology": ["innovation", "digital", "software", "future", "trends", "development", "solutions", "tech"],
    "health": ["wellness", "fitness", "nutrition", "lifestyle", "exercise", "mental", "habits", "healthy"],
}
DEFAULT_KEYWORDS = ["guide", "tips", "tutorial", "beginners", "essential", "complete"]

PLATFORM_CATEGORY_IDS = {
    "investing": "25",
    "education": "27",
    "tourism": "19",
    "technology": "28",
    "health": "26",
}

VISUAL_GUIDELINES = {
    "finance": (
        "financial charts, graphs and market data on screens; professional trading or office environment; "
        "green/red color coding for gains and losses; warm, trustworthy lighting"
    ),
    "technology": (
        "modern tech workspace with multiple monitors; code, dashboards or tech interfaces on screens; "
        "sleek minimalist environment; blue/purple color scheme; clean futuristic lighting"
    ),
    "education": (
        "clean, organized learning environment; books, notebooks and educational materials; "
        "bright, encouraging atmosphere; warm natural lighting; visuals of growth and progress"
    ),
    "health": (
        "clean, wellness-focused environment; health data, fitness trackers or medical charts; "
        "natural calming colors (green, blue, white); soft natural lighting"
    ),
    "general": (
        "versatile professional environment; relevant data or information on screens; "
        "neutral appealing color palette; balanced professional lighting"
    ),
}

TOPIC_TEMPLATES: Dict[str, Dict[str, str]] = {
    "investing": {
        "title": "Essential {topic} Guide for Beginners",
        "hook": "Everyone is talking about {topic}. Here is what it means for your money.",
        "narration": (
            "Everyone is talking about {topic}, and it matters for your money. "
            "Start with the basics: {keywords}. Each one shapes how risk and returns play out over time. "
            "Diversify instead of chasing a single headline, keep costs low, and think in years, not days. "
            "Check the facts before you act, and build a plan you can stick with. "
            "Follow for more clear, practical money guides."
        ),
    },
    "education": {
        "title": "Master {topic}: Proven Learning Strategies",
        "hook": "Want to understand {topic} fast? Here is the short version.",
        "narration": (
            "Want to understand {topic} fast? Here is the short version. "
            "Focus on a few core ideas: {keywords}. "
            "Learn one concept at a time, test yourself instead of rereading, and connect each idea to a real example. "
            "Small daily sessions beat one long cram. "
            "Save this video and follow for more step by step learning guides."
        ),
    },
    "tourism": {
        "title": "Ultimate {topic} Travel Guide",
        "hook": "{topic} is on everyone's list right now. Here is how to do it right.",
        "narration": (
            "{topic} is on everyone's list right now, and for good reason. "
            "Plan around {keywords}. "
            "Book early for the best prices, learn a little about the local culture, and leave room in your schedule for the unexpected. "
            "Travel light and keep a simple budget. "
            "Follow for more travel guides you can actually use."
        ),
    },
    "technology": {
        "title": "Latest {topic} Trends and Innovations",
        "hook": "{topic} is moving fast. Here is what actually changed.",
        "narration": (
            "{topic} is moving fast, so here is what actually changed. "
            "The key pieces are {keywords}. "
            "Look past the hype and ask what problem it solves, who can use it today, and what it costs. "
            "Early adopters learn the most, but careful testing still wins. "
            "Follow for more clear explainers on the technology shaping what comes next."
        ),
    },
    "health": {
        "title": "Complete {topic} Guide for Better Health",
        "hook": "Curious about {topic}? Here is what the evidence says.",
        "narration": (
            "Curious about {topic}? Here is what the evidence says. "
            "Pay attention to {keywords}. "
            "Small, consistent habits beat dramatic changes, and what works for one person may not work for everyone. "
            "Talk to a professional before big changes to your routine. "
            "Follow for more practical, evidence based wellness tips."
        ),
    },
}

KEYWORD_TITLE_TEMPLATES = (
    "{pair_amp} in {topic}: Complete Guide",
    "Master {topic}: {first} Tips That Work",
    "{topic} Success: {pair_and} Explained",
    "Essential {topic}: {first} Strategies",
)

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def fill_template(template: str, **values: str) -> str:
    """Substitute ``{name}`` placeholders; unknown names are left as-is."""
    return _PLACEHOLDER.sub(lambda match: str(values.get(match.group(1), match.group(0))), template)


def resolve_topic(category: str) -> str:
    """Coarse template topic for a category (education when unknown)."""
    return _TOPIC_ALIASES.get(str(category or "").strip().lower(), "education")


def visual_guidelines(category: str) -> str:
    key = str(category or "").strip().lower()
    if key in VISUAL_GUIDELINES:
        return VISUAL_GUIDELINES[key]
    topic = resolve_topic(key)
    if topic == "investing":
        return VISUAL_GUIDELINES["finance"]
    return VISUAL_GUIDELINES.get(topic, VISUAL_GUIDELINES["general"])


def topic_keywords(topic: str) -> List[str]:
    return list(TOPIC_KEYWORDS.get(topic, DEFAULT_KEYWORDS))


def _display(text: str) -> str:
    text = " ".join(str(text or "").split())
    return text[:1].upper() + text[1:]


def _dedupe(values: Sequence[str], limit: int) -> List[str]:
    seen = set()
    output = []
    for value in values:
        text = str(value or "").strip()
        if not text or text.lower() in seen:
            continue
        seen.add(text.lower())
        output.append(text)
        if len(output) >= limit:
            break
    return output


def combined_keywords(trend: EnrichedTrend, topic: str) -> List[str]:
    """Trend related terms first, then the topic list, at most eight."""
    return _dedupe([*trend.related_terms, *topic_keywords(topic)], MAX_KEYWORDS)


def keyword_title(topic_display: str, keywords: Sequence[str], seed: str) -> str:
    """One of four title templates, picked by a stable hash of ``seed``."""
    top = list(keywords[:2]) or ["Key Ideas"]
    template = KEYWORD_TITLE_TEMPLATES[zlib.crc32(seed.encode("utf-8")) % len(KEYWORD_TITLE_TEMPLATES)]
    return fill_template(
        template,
        topic=topic_display,
        first=top[0],
        pair_amp=" & ".join(top),
        pair_and=" and ".join(top),
    )


def seo_metadata(topic: str, subject: str, keywords: Sequence[str], title: str) -> SeoFields:
    """Fallback SEO block: bounded description, deduped tags, platform category id."""
    description = (
        f"Learn about {', '.join(list(keywords)[:3])} in this comprehensive {subject} guide. "
        f"Get practical tips and expert insights to improve your {subject} knowledge and skills."
    )[:SEO_DESCRIPTION_LIMIT]
    compact = re.sub(r"\s+", "", subject.lower())
    tags = _dedupe([subject, f"{compact}guide", f"{compact}tips", *list(keywords)[:8]], MAX_TAGS)
    return SeoFields(
        title=title,
        description=description,
        tags=tags,
        category_id=PLATFORM_CATEGORY_IDS.get(topic, "27"),
    )


def _visual_prompt(subject: str, category: str, duration_seconds: int) -> str:
    return (
        f"A {duration_seconds}-second cinematic explainer video about {subject}. "
        f"Setting: {visual_guidelines(category)}. "
        "Smooth camera movement, consistent color grading, clean composition, no on-screen text."
    )


def _thumbnail_prompt(subject: str, category: str) -> str:
    return f"Bold, high-contrast thumbnail about {subject}; {visual_guidelines(category).split(';')[0]}; clear focal subject."


def _main_points(keywords: Sequence[str], subject: str) -> List[str]:
    points = [f"What {kw} means for {subject}" for kw in list(keywords)[:3]]
    return points or [f"Why {subject} matters now"]


def build_template_brief(trend: EnrichedTrend, category: str, duration_seconds: int) -> ContentBrief:
    topic = resolve_topic(category)
    template = TOPIC_TEMPLATES.get(topic, TOPIC_TEMPLATES["education"])
    subject = trend.keyword
    keywords = combined_keywords(trend, topic)
    title = fill_template(template["title"], topic=_display(subject))
    values = {"topic": subject, "keywords": ", ".join(keywords[:3]), "title": title}

    return ContentBrief(
        trend_id=trend.trend_id,
        keyword=trend.keyword,
        category=category,
        visual_prompt=_visual_prompt(subject, category, duration_seconds),
        narration_script=fill_template(template["narration"], **values),
        thumbnail_prompt=_thumbnail_prompt(subject, category),
        seo=seo_metadata(topic, subject, keywords, title),
        structure=ContentStructure(
            hook=fill_template(template["hook"], **values),
            main_points=_main_points(keywords, subject),
            call_to_action="Follow for more.",
        ),
        confidence=TEMPLATE_CONFIDENCE,
        source=BriefSource.FALLBACK_TEMPLATE,
        reasoning=f"template '{topic}' applied to trend keyword",
    )


def build_keyword_brief(trend: EnrichedTrend, category: str, duration_seconds: int) -> ContentBrief:
    topic = resolve_topic(category)
    subject = trend.keyword
    keywords = combined_keywords(trend, topic)
    title = keyword_title(_display(subject), keywords, trend.normalized_keyword)
    focus = ", ".join(keywords[:5])

    narration = (
        f"Here is what you need to know about {subject}. "
        f"The conversation centers on {focus}. "
        "We will cover what is happening, why it matters, and what you can do with it today. "
        "Keep it simple, check the facts, and take one practical step at a time. "
        "Follow for more quick, useful breakdowns."
    )
    return ContentBrief(
        trend_id=trend.trend_id,
        keyword=trend.keyword,
        category=category,
        visual_prompt=_visual_prompt(subject, category, duration_seconds),
        narration_script=narration,
        thumbnail_prompt=_thumbnail_prompt(subject, category),
        seo=seo_metadata(topic, subject, keywords, title),
        structure=ContentStructure(
            hook=f"Here is what you need to know about {subject}.",
            main_points=_main_points(keywords, subject),
            call_to_action="Follow for more.",
        ),
        confidence=KEYWORD_CONFIDENCE,
        source=BriefSource.FALLBACK_KEYWORD,
        reasoning=f"keyword ladder: {len(keywords)} keywords",
    )


def build_generic_brief(trend: EnrichedTrend, category: str, duration_seconds: int) -> ContentBrief:
    """Last rung: topic-agnostic copy that is always valid."""
    subject = " ".join(str(trend.keyword or "").split()) or "this topic"
    topic = resolve_topic(category)
    keywords = topic_keywords(topic)
    title = f"Complete {_display(subject)} Guide for Beginners"

    narration = (
        f"This is a quick beginner's guide to {subject}. "
        "We will cover the fundamental ideas, a few common misconceptions, and practical steps you can take right away. "
        "Start small, stay curious, and build on what works. "
        "Follow for more simple guides."
    )
    return ContentBrief(
        trend_id=trend.trend_id,
        keyword=trend.keyword,
        category=category,
        visual_prompt=_visual_prompt(subject, "general", duration_seconds),
        narration_script=narration,
        thumbnail_prompt=_thumbnail_prompt(subject, "general"),
        seo=seo_metadata(topic, subject, keywords, title),
        structure=ContentStructure(
            hook=f"New to {subject}? Start here.",
            main_points=["Fundamentals", "Common misconceptions", "Practical first steps"],
            call_to_action="Follow for more.",
        ),
        confidence=GENERIC_CONFIDENCE,
        source=BriefSource.FALLBACK_GENERIC,
        reasoning="generic fallback",
    )
