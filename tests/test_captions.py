"""Tests for caption source parsing."""

import json

import pytest

from bisub.subtitles.captions import (
    load_raw_cues,
    normalize_caption_text,
    parse_json_cues,
    parse_timedtext_xml,
)
from bisub.subtitles.merger import merge_cues


def test_normalize_caption_text():
    assert normalize_caption_text("it&#39;s\n  a   test ") == "it's a test"


def test_parse_timedtext_xml_converts_seconds(sample_xml):
    cues = parse_timedtext_xml(sample_xml.read_text(encoding="utf-8"))
    assert cues[0].start_ms == 0
    assert cues[0].duration_ms == 2000
    assert cues[1].start_ms == 2500
    assert cues[2].text == "it's a new day"


def test_parse_timedtext_xml_skips_bad_timing(sample_xml):
    cues = parse_timedtext_xml(sample_xml.read_text(encoding="utf-8"))
    texts = [c.text for c in cues]
    assert "broken start" not in texts
    assert "no duration" not in texts


def test_cue_without_dur_is_not_merged():
    xml_text = (
        '<transcript><text start="0">no dur</text>'
        '<text start="1" dur="1">ok</text>'
        '<text start="3" dur="soon">bad dur</text></transcript>'
    )
    groups = merge_cues(parse_timedtext_xml(xml_text))
    assert [(g.start_ms, g.end_ms, g.text) for g in groups] == [(1000, 2000, "ok")]


def test_load_xml_and_merge(sample_xml):
    groups = merge_cues(load_raw_cues(sample_xml))
    assert [(g.start_ms, g.end_ms, g.text) for g in groups] == [
        (0, 4000, "hello world"),
        (20000, 23200, "it's a new day"),
    ]


def test_load_vtt(sample_vtt):
    cues = load_raw_cues(sample_vtt)
    assert len(cues) == 3
    assert cues[0].text == "so today we're going to"
    assert cues[1].start_ms == 2500
    assert cues[1].duration_ms == 1500


def test_load_json(tmp_path):
    path = tmp_path / "cues.json"
    path.write_text(
        json.dumps({"cues": [{"start": 0, "duration": 1000, "text": "hi"}, "junk"]}),
        encoding="utf-8",
    )
    assert load_raw_cues(path) == [{"start": 0, "duration": 1000, "text": "hi"}]


def test_parse_json_cues_rejects_scalars():
    with pytest.raises(ValueError):
        parse_json_cues(42)


def test_missing_file_gives_empty_list(tmp_path):
    assert load_raw_cues(tmp_path / "missing.xml") == []


def test_malformed_xml_gives_empty_list(tmp_path):
    path = tmp_path / "broken.xml"
    path.write_text("<transcript><text start='0'>", encoding="utf-8")
    assert load_raw_cues(path) == []


def test_malformed_json_gives_empty_list(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_raw_cues(path) == []
