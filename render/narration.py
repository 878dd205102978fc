"""Narration markup (SSML) and voice selection."""

from __future__ import annotations

from dataclasses import dataclass
from xml.sax.saxutils import escape

from .captions import split_words


@dataclass(frozen=True)
class VoiceProfile:
    voice_id: str
    style: str


DEFAULT_VOICE = VoiceProfile("Matthew", "professional")

VOICE_PROFILES = {
    "finance": {
        "professionals": VoiceProfile("Matthew", "authoritative"),
        "general": VoiceProfile("Joanna", "trustworthy"),
    },
    "technology": {
        "professionals": VoiceProfile("Matthew", "confident"),
        "general": VoiceProfile("Amy", "modern"),
    },
    "education": {
        "students": VoiceProfile("Joanna", "friendly"),
        "general": VoiceProfile("Matthew", "educational"),
    },
    "health": {
        "professionals": VoiceProfile("Joanna", "professional"),
        "general": VoiceProfile("Amy", "caring"),
    },
}

_CATEGORY_ALIASES = {"investing": "finance", "business": "finance", "tech": "technology", "wellness": "health"}


def select_voice(category: str, audience: str = "general") -> VoiceProfile:
    key = str(category or "").strip().lower()
    key = _CATEGORY_ALIASES.get(key, key)
    return VOICE_PROFILES.get(key, {}).get(str(audience or "general").strip().lower(), DEFAULT_VOICE)


def speaking_rate(script: str, duration_seconds: float) -> str:
    """fast above 3 words/sec, slow below 2, medium otherwise."""
    wps = len(split_words(script)) / float(duration_seconds)
    if wps > 3:
        return "fast"
    if wps < 2:
        return "slow"
    return "medium"


def build_ssml(script: str, duration_seconds: float) -> str:
    rate = speaking_rate(script, duration_seconds)
    return (
        "<speak>"
        f'<prosody rate="{rate}" pitch="medium" volume="loud">'
        f'<emphasis level="moderate">{escape(" ".join(split_words(script)))}</emphasis>'
        "</prosody>"
        "</speak>"
    )
