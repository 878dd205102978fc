"""Media assembly: captions, narration markup, backend adapters."""

from .captions import compute_captions, format_srt_timestamp, to_srt, words_per_segment
from .manager import AssemblyJob, MediaAssembler, build_visual_prompt
from .narration import VoiceProfile, build_ssml, select_voice, speaking_rate

__all__ = [
    "AssemblyJob",
    "MediaAssembler",
    "VoiceProfile",
    "build_ssml",
    "build_visual_prompt",
    "compute_captions",
    "format_srt_timestamp",
    "select_voice",
    "speaking_rate",
    "to_srt",
    "words_per_segment",
]
