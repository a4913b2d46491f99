"""Tests for output paths and video identifiers."""

from pathlib import Path

from bisub.utils.paths import output_paths, slugify, video_id_from


class TestSlugify:
    def test_basic(self):
        assert slugify("Hello World") == "hello-world"

    def test_special_characters(self):
        assert slugify("Talk #3 — Édition spéciale!") == "talk-3-édition-spéciale"

    def test_collapses_dashes(self):
        assert slugify("a---b   c") == "a-b-c"

    def test_strips_leading_trailing(self):
        assert slugify("--hello--") == "hello"

    def test_truncates_long_strings(self):
        assert len(slugify("a" * 200)) <= 80

    def test_empty_string(self):
        assert slugify("") == ""


class TestVideoId:
    def test_watch_url(self):
        assert video_id_from("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42") == "dQw4w9WgXcQ"

    def test_short_url(self):
        assert video_id_from("https://youtu.be/dQw4w9WgXcQ?si=abc") == "dQw4w9WgXcQ"

    def test_other_url(self):
        assert video_id_from("https://example.com/videos/talk") == "examplecomvideostalk"

    def test_file_path(self):
        assert video_id_from("/tmp/My Talk.en.xml") == "my-talken"

    def test_bare_id_keeps_case(self):
        assert video_id_from("dQw4w9WgXcQ") == "dQw4w9WgXcQ"
        assert video_id_from("dqw4w9wgxcq") != video_id_from("DQW4W9WGXCQ")

    def test_empty_falls_back(self):
        assert video_id_from("???") == "untitled"


def test_output_paths(tmp_path: Path):
    paths = output_paths(tmp_path, "dQw4w9WgXcQ")
    assert set(paths) == {"merged_vtt", "translation_vtt", "bilingual_vtt", "translations_json"}
    assert paths["bilingual_vtt"] == tmp_path / "dQw4w9WgXcQ.bilingual.vtt"
    assert output_paths(tmp_path, "My Talk")["merged_vtt"] == tmp_path / "my-talk.merged.vtt"
    assert all(p.parent == tmp_path for p in paths.values())
