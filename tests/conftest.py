"""Shared test fixtures."""

from pathlib import Path

import pytest

from bisub.core.config import BisubConfig, SchedulerConfig
from bisub.storage.backends import MemoryStorage

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def sample_xml(fixtures_dir: Path) -> Path:
    return fixtures_dir / "sample.xml"


@pytest.fixture
def sample_vtt(fixtures_dir: Path) -> Path:
    return fixtures_dir / "sample.vtt"


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def fast_scheduler_config() -> SchedulerConfig:
    """No waits between batches or retries; runs start immediately."""
    return SchedulerConfig(
        batch_size=2,
        batch_interval_ms=0,
        max_batch_retries=3,
        retry_base_delay_ms=0,
        start_paused=False,
    )


@pytest.fixture
def fast_config(fast_scheduler_config: SchedulerConfig) -> BisubConfig:
    return BisubConfig(scheduler=fast_scheduler_config)
