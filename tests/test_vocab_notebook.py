"""Tests for the chunked vocabulary notebook."""

import asyncio
import json

import pytest

from bisub.core.models import TranslationRecord, VocabItem
from bisub.vocab.notebook import NotebookEntry, VocabularyNotebook


def _run(coro):
    return asyncio.run(coro)


def test_add_and_list(storage):
    notebook = VocabularyNotebook(storage)
    assert _run(notebook.add_word(NotebookEntry(word="Benchmark", meaning="基准")))

    words = _run(notebook.get_words())
    assert list(words) == ["benchmark"]
    assert words["benchmark"].meaning == "基准"
    assert not words["benchmark"].mastered


def test_duplicates_ignored_case_insensitively(storage):
    notebook = VocabularyNotebook(storage)
    _run(notebook.add_word(NotebookEntry(word="word")))
    assert not _run(notebook.add_word(NotebookEntry(word="WORD ")))


def test_empty_word_rejected(storage):
    with pytest.raises(ValueError):
        _run(VocabularyNotebook(storage).add_word(NotebookEntry(word="  ")))


def test_words_spill_into_new_chunks(storage):
    notebook = VocabularyNotebook(storage, chunk_size=2)
    for word in ["a", "b", "c"]:
        _run(notebook.add_word(NotebookEntry(word=word)))

    assert set(_run(storage.get("vocab_chunk_0"))) == {"a", "b"}
    assert set(_run(storage.get("vocab_chunk_1"))) == {"c"}
    assert len(_run(notebook.get_words())) == 3


def test_add_from_record(storage):
    record = TranslationRecord(
        "A benchmark.",
        "一个基准。",
        (
            VocabItem(
                "benchmark",
                chinese_meaning="基准",
                chinese_english_sentence="这个benchmark很难。",
            ),
            VocabItem(""),
        ),
    )
    notebook = VocabularyNotebook(storage)
    assert _run(notebook.add_from_record(record)) == 1
    assert _run(notebook.add_from_record(record)) == 0

    entry = _run(notebook.get_words())["benchmark"]
    assert entry.example_sentence == "这个benchmark很难。"
    assert entry.memory_method == ""


def test_remove_and_update(storage):
    notebook = VocabularyNotebook(storage)
    _run(notebook.add_word(NotebookEntry(word="keep")))
    _run(notebook.add_word(NotebookEntry(word="drop")))

    assert _run(notebook.remove_word("Drop"))
    assert not _run(notebook.remove_word("drop"))

    updated = _run(notebook.update_word("keep", mastered=True))
    assert updated.mastered
    assert _run(notebook.get_words())["keep"].mastered
    assert _run(notebook.update_word("missing", mastered=True)) is None


def test_export_json(storage, tmp_path):
    notebook = VocabularyNotebook(storage)
    _run(notebook.add_word(NotebookEntry(word="word", meaning="词", timestamp=1)))
    path = _run(notebook.export_json(tmp_path / "out" / "vocab.json"))
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["word"]["meaning"] == "词"
    assert data["word"]["timestamp"] == 1
