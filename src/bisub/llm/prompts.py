"""Prompt templates and response parsing for subtitle translation and analysis."""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterator

from bisub.core.errors import ResponseParseError
from bisub.core.models import SubtitleGroup

BATCH_TRANSLATION_PROMPT = """\
You are a professional bilingual subtitle assistant. Process the input strictly \
as follows.

1. Processing rules:
- Keep the original timestamps (startTime/endTime) unchanged
- Use all input texts as context and correct the English in each "text" field \
(the subtitles come from machine transcription and contain errors) into "correctedText"
- Produce an accurate, fluent {target_language} translation in "translation"
- Keep all time values as integers
- Return exactly {count} objects, one per input object, in the same order

2. JSON rules:
- Output ONLY a JSON array, no explanations
- Use double quotes ("")
- No trailing commas
- Escape special characters correctly
- Remove line breaks inside strings
- Keep the field order strictly: startTime > endTime > correctedText > translation

3. Input example:
[
    {{"startTime": 120, "endTime": 1800, "text": "hey welcome back so this week the world"}}
]

4. Output example:
[
    {{
        "startTime": 120,
        "endTime": 1800,
        "correctedText": "Hey, welcome back! So this week, the world",
        "translation": "嘿，欢迎回来！本周我们将讨论"
    }}
]

Now process this input:
{batch_json}
"""

RETRY_NOTE = """
Note: this is retry attempt {attempt}. The previous response could not be used. \
Return ONLY a valid JSON array with exactly {count} objects.
"""

TEXT_ANALYSIS_PROMPT = """\
You are a professional translator helping a learner read an English sentence.

1. Translate the text into {target_language}, choosing the meaning that best fits the context.
2. Identify the language difficulties in the text that are challenging for \
non-native learners: words, phrases/chunks, slang, abbreviations and internet terms.
3. For each difficulty give:
- "vocabulary": the expression
- "type": Words, Phrases, Slang or Abbreviations
- "part_of_speech": n., v., adj., adv., phrase, etc.
- "phonetic": American IPA
- "chinese_meaning": the {target_language} meaning in this context
- "chinese_english_sentence": a {target_language} sentence that embeds only the \
English expression, followed by its English translation in parentheses

Return ONLY a JSON object in this shape:
{{
    "original": "...",
    "translation": "...",
    "difficultVocabulary": [
        {{
            "vocabulary": "benchmark",
            "type": "Words",
            "part_of_speech": "n.",
            "phonetic": "/ˈbentʃmɑːrk/",
            "chinese_meaning": "基准；参照标准",
            "chinese_english_sentence": "这个模型在常见benchmark中表现出色。(The model performs well on common benchmarks.)"
        }}
    ]
}}

Text:
{text}
"""

_EXPRESSION_FIELDS = """\
- "type": Words, Phrases, Slang or Abbreviations
- "expression": the expression
- "difficulty": CEFR level (C2, C1, B2, B1, A2, A1), sorted from hardest to easiest
- "part_of_speech": n., v., adj., adv., phrase, etc.
- "phonetic": American IPA
- "chinese_meaning": the {target_language} meaning that fits the context best
- "memory_method": a mnemonic (sound association, roots and affixes, context)
- "source_sentence": the full sentence from the subtitles, with the expression in **bold**
- "source_translation": a natural {target_language} translation of the source sentence
"""

WORDS_REPORT_PROMPT = (
    """\
You are an expert in English subtitles, helping a learner understand a video.
Pick the {limit} hardest expressions (words, phrases, slang, abbreviations) in the \
subtitles below, preferring those that actually affect comprehension in context.
For each give:
"""
    + _EXPRESSION_FIELDS
    + """
Return ONLY a JSON array of objects.

Subtitles:
{subtitles}
"""
)

PHRASES_REPORT_PROMPT = (
    """\
You are an expert in English subtitles, helping a learner understand a video.
Pick the {limit} hardest phrases/chunks, slang and abbreviations (not single words) \
in the subtitles below.
For each give:
"""
    + _EXPRESSION_FIELDS
    + """
Return ONLY a JSON array of objects.

Subtitles:
{subtitles}
"""
)

SUMMARY_REPORT_PROMPT = """\
Summarise the subtitles below in {target_language} and list the core viewpoints \
with their supporting arguments. Return ONLY a JSON object:
{{
    "Summary": "...",
    "Viewpoints": [
        {{"Viewpoint": "...", "Argument": ["Argument 1: ...", "Argument 2: ..."]}}
    ]
}}

Subtitles:
{subtitles}
"""

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([\]}])")


def format_batch(batch: list[SubtitleGroup]) -> str:
    """Serialise a batch as the JSON array embedded in the prompt."""
    return json.dumps([g.to_dict() for g in batch], ensure_ascii=False, indent=2)


def build_batch_prompt(
    batch: list[SubtitleGroup],
    target_language: str,
    attempt: int = 0,
) -> str:
    """Build the batch translation prompt.

    Args:
        batch: Groups to translate, in order.
        target_language: Human-readable target language name.
        attempt: Retry number; 0 for the first attempt. Retries carry a note
            telling the backend the previous answer was unusable.
    """
    prompt = BATCH_TRANSLATION_PROMPT.format(
        target_language=target_language,
        count=len(batch),
        batch_json=format_batch(batch),
    )
    if attempt > 0:
        prompt += RETRY_NOTE.format(attempt=attempt, count=len(batch))
    return prompt


def _balanced_spans(text: str, opener: str, closer: str) -> Iterator[str]:
    """Yield bracket-balanced spans, one per ``opener`` position, in order.

    Brackets inside JSON strings are ignored.
    """
    start = text.find(opener)
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == opener:
                depth += 1
            elif ch == closer:
                depth -= 1
                if depth == 0:
                    yield text[start : i + 1]
                    break
        start = text.find(opener, start + 1)


def _loads_lenient(candidate: str) -> object:
    try:
        return json.loads(candidate)
    except ValueError:
        # Models often leave trailing commas despite instructions
        return json.loads(_TRAILING_COMMA_RE.sub(r"\1", candidate))


def _is_record_list(data: object) -> bool:
    return bool(data) and all(isinstance(item, dict) for item in data)


def _extract_json(
    response: str,
    opener: str,
    closer: str,
    kind: type,
    prefer: Callable[[object], bool] | None = None,
) -> object:
    if not response or not response.strip():
        raise ResponseParseError("empty response")

    candidates = [m.strip() for m in _FENCE_RE.findall(response)]
    candidates.append(response.strip())

    last_error: Exception | None = None
    fallback: tuple[int, object] | None = None
    for candidate in candidates:
        for span in _balanced_spans(candidate, opener, closer):
            try:
                data = _loads_lenient(span)
            except ValueError as e:
                last_error = e
                continue
            if not isinstance(data, kind):
                continue
            if prefer is None or prefer(data):
                return data
            # Prose like "see [1]" parses too; keep looking for the answer
            if fallback is None or len(span) > fallback[0]:
                fallback = (len(span), data)

    if fallback is not None:
        return fallback[1]
    if last_error is not None:
        raise ResponseParseError(f"invalid JSON in response: {last_error}")
    raise ResponseParseError(f"no JSON {kind.__name__} found in response")


def extract_json_array(response: str) -> list:
    """Extract the JSON array from free-form model output.

    Tolerates Markdown code fences, leading/trailing prose (even prose with
    its own brackets) and trailing commas. The first array of objects wins;
    without one, the longest parseable array is returned.

    Raises:
        ResponseParseError: If no parseable JSON array is present.
    """
    return _extract_json(response, "[", "]", list, prefer=_is_record_list)


def extract_json_object(response: str) -> dict:
    """Extract a JSON object from free-form model output.

    Raises:
        ResponseParseError: If no parseable JSON object is present.
    """
    return _extract_json(response, "{", "}", dict)
