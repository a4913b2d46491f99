"""Tests for storage backends."""

import asyncio

import pytest

from bisub.core.config import StorageConfig
from bisub.core.errors import StorageError
from bisub.storage.backends import JsonFileStorage, MemoryStorage, create_storage


def test_memory_storage_roundtrip():
    storage = MemoryStorage()

    async def scenario():
        await storage.set("k", {"a": [1, 2]})
        value = await storage.get("k")
        await storage.delete("k")
        return value, await storage.get("k")

    value, after_delete = asyncio.run(scenario())
    assert value == {"a": [1, 2]}
    assert after_delete is None


def test_memory_storage_returns_copies():
    storage = MemoryStorage()
    data = {"a": 1}
    asyncio.run(storage.set("k", data))
    data["a"] = 2
    assert asyncio.run(storage.get("k")) == {"a": 1}


def test_memory_storage_rejects_unserialisable():
    with pytest.raises(StorageError):
        asyncio.run(MemoryStorage().set("k", {"bad": object()}))


def test_json_file_storage_roundtrip(tmp_path):
    storage = JsonFileStorage(tmp_path / "store")
    asyncio.run(storage.set("yt-subtitles-abc", {"hello": "你好"}))
    assert storage.path_for("yt-subtitles-abc").is_file()
    assert asyncio.run(storage.get("yt-subtitles-abc")) == {"hello": "你好"}

    asyncio.run(storage.delete("yt-subtitles-abc"))
    assert asyncio.run(storage.get("yt-subtitles-abc")) is None


def test_json_file_storage_distinct_keys_distinct_files(tmp_path):
    storage = JsonFileStorage(tmp_path)
    assert storage.path_for("a/b") != storage.path_for("a?b")


def test_json_file_storage_corrupt_file_raises(tmp_path):
    storage = JsonFileStorage(tmp_path)
    storage.path_for("k").write_text("{oops", encoding="utf-8")
    with pytest.raises(StorageError):
        asyncio.run(storage.get("k"))


def test_create_storage(tmp_path):
    assert isinstance(create_storage(StorageConfig(backend="memory")), MemoryStorage)
    storage = create_storage(StorageConfig(backend="json", directory=tmp_path))
    assert isinstance(storage, JsonFileStorage)
    with pytest.raises(ValueError):
        create_storage(StorageConfig(backend="redis"))
