"""Integration tests requiring Ollama running locally.

Run with: pytest -m integration
Skipped by default in CI and normal test runs.
"""

import asyncio
import shutil
import subprocess

import pytest

from bisub.core.config import SchedulerConfig, ServiceConfig
from bisub.core.models import SubtitleGroup
from bisub.llm.client import LiteLLMClient
from bisub.llm.translator import BatchScheduler, SchedulerState
from bisub.storage.cache import TranslationCache

pytestmark = pytest.mark.integration

TEST_MODEL = "qwen3:0.6b"
TEST_SERVICE = ServiceConfig(
    model=f"ollama_chat/{TEST_MODEL}", api_base="http://localhost:11434", max_retries=1
)


def ollama_available() -> bool:
    """Check if Ollama is running and reachable."""
    if not shutil.which("ollama"):
        return False
    try:
        result = subprocess.run(["ollama", "list"], capture_output=True, timeout=5)
        return result.returncode == 0
    except (OSError, subprocess.SubprocessError):
        return False


skip_no_ollama = pytest.mark.skipif(not ollama_available(), reason="Ollama not running")


@skip_no_ollama
def test_translate_batch_real():
    groups = [
        SubtitleGroup(0, 2000, "hello everyone welcome back"),
        SubtitleGroup(2500, 5000, "today we talk about coffee"),
    ]
    client = LiteLLMClient(TEST_SERVICE)
    config = SchedulerConfig(
        batch_size=2, batch_interval_ms=0, retry_base_delay_ms=500, start_paused=False
    )
    scheduler = BatchScheduler(client, TranslationCache(), config=config)

    state = asyncio.run(scheduler.start(groups, "integration"))
    client.close()

    assert state is SchedulerState.COMPLETED
    for group in groups:
        record = scheduler.cache.get(group.text)
        assert record is not None
        assert record.translation  # non-empty
