"""Fixtures for courier testing."""
import os
import pathlib

import pytest

from courier.config_store import MemoryConfigStore
from courier.mapping import MappingCache
from courier.transfer import TransferAgent
from tests.helpers import MemoryStorage


@pytest.fixture
def download_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    return tmp_path / "downloads"


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def config_store() -> MemoryConfigStore:
    return MemoryConfigStore()


@pytest.fixture
def mapping(config_store: MemoryConfigStore) -> MappingCache:
    return MappingCache(config_store)


@pytest.fixture
def agent(
    memory_storage: MemoryStorage,
    mapping: MappingCache,
    download_dir: pathlib.Path,
) -> TransferAgent:
    """A transfer agent with in-memory storage and mapping store."""
    return TransferAgent(memory_storage, mapping, download_dir=download_dir)


@pytest.fixture
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make sure no configuration leaks in from the environment."""
    for var in list(os.environ):
        if var.startswith("COURIER_"):
            monkeypatch.delenv(var)
