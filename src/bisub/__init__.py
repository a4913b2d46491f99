"""bisub: bilingual subtitles with resilient LLM batch translation."""

__version__ = "0.1.0"
