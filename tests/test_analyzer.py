"""Tests for inline text analysis and subtitle reports."""

import asyncio
import json

import pytest

from bisub.core.errors import ResponseParseError, TranslationCallError
from bisub.llm.analyzer import ReportKind, SubtitleAnalyzer, TextAnalyzer, contains_english
from fakes import FakeClient, make_groups

ANALYSIS = json.dumps(
    {
        "original": "It's a benchmark result.",
        "translation": "这是一个基准结果。",
        "difficultVocabulary": [
            {"vocabulary": "benchmark", "type": "Words", "chinese_meaning": "基准"}
        ],
    }
)


class TestContainsEnglish:
    def test_sentence(self):
        assert contains_english("this is fine")

    def test_too_short(self):
        assert not contains_english("hello world")

    def test_chinese_present(self):
        assert not contains_english("this is 很好 fine")

    def test_contractions_and_punctuation(self):
        assert contains_english("Well, it's not over-engineered!")


class TestTextAnalyzer:
    def test_analyze_and_cache(self):
        client = FakeClient([ANALYSIS])
        analyzer = TextAnalyzer(client)

        first = asyncio.run(analyzer.analyze("It's a benchmark result."))
        second = asyncio.run(analyzer.analyze("  It's a benchmark result.  "))

        assert first.translation == "这是一个基准结果。"
        assert first.corrected_text == "It's a benchmark result."
        assert first.difficult_vocabulary[0].vocabulary == "benchmark"
        assert second is first
        assert client.calls == 1

    def test_non_english_skipped(self):
        client = FakeClient()
        assert asyncio.run(TextAnalyzer(client).analyze("你好世界")) is None
        assert client.calls == 0

    def test_empty_response_raises(self):
        with pytest.raises(TranslationCallError):
            asyncio.run(TextAnalyzer(FakeClient([""])).analyze("this needs translating"))

    def test_unusable_response_raises(self):
        client = FakeClient(['{"original": "x"}'])
        with pytest.raises(ResponseParseError):
            asyncio.run(TextAnalyzer(client).analyze("this needs translating"))


class TestSubtitleAnalyzer:
    def test_words_report_cached_per_video(self, storage):
        report = [{"expression": "benchmark", "difficulty": "C1"}]
        client = FakeClient([json.dumps(report)])
        analyzer = SubtitleAnalyzer(client, storage)
        groups = make_groups("we set a new benchmark", "and moved on")

        first = asyncio.run(analyzer.analyze(groups, ReportKind.WORDS, video_id="vid", limit=3))
        second = asyncio.run(analyzer.analyze(groups, ReportKind.WORDS, video_id="vid"))

        assert first == report
        assert second == report
        assert client.calls == 1
        assert "we set a new benchmark\nand moved on" in client.prompts[0]
        assert "3 hardest" in client.prompts[0]
        assert asyncio.run(storage.get("yt-subtitle-analysis-vid-words")) == report

    def test_summary_report(self, storage):
        summary = {"Summary": "About benchmarks.", "Viewpoints": []}
        client = FakeClient([f"```json\n{json.dumps(summary)}\n```"])
        result = asyncio.run(
            SubtitleAnalyzer(client, storage).analyze(make_groups("a"), ReportKind.SUMMARY, "vid")
        )
        assert result == summary

    def test_failure_returns_none_and_caches_nothing(self, storage):
        client = FakeClient(["sorry, I cannot help"])
        result = asyncio.run(
            SubtitleAnalyzer(client, storage).analyze(make_groups("a"), ReportKind.PHRASES, "vid")
        )
        assert result is None
        assert asyncio.run(storage.get("yt-subtitle-analysis-vid-phrases")) is None

    def test_without_video_id_is_not_cached(self, storage):
        client = FakeClient(["[]", "[]"])
        analyzer = SubtitleAnalyzer(client, storage)
        asyncio.run(analyzer.analyze(make_groups("a")))
        asyncio.run(analyzer.analyze(make_groups("a")))
        assert client.calls == 2
