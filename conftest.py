import shutil
from pathlib import Path

import pytest

from story_builder import storage

TEST_DATA_DIR = Path("data-tests")


@pytest.fixture(autouse=True)
def clean_test_data(monkeypatch):
    """Wipe data-tests/ and open a fresh in-memory store before every test."""
    if TEST_DATA_DIR.exists():
        shutil.rmtree(TEST_DATA_DIR)
    # canned replies unless a test configures a provider itself
    monkeypatch.setenv("LLM_PROVIDER", "fallback")
    storage.init_storage(TEST_DATA_DIR, storage.MEMORY_URL)
    yield
    # leave data-tests around after tests for inspection; CI can ignore it


@pytest.fixture(params=[storage.MEMORY_URL, "sqlite://"], ids=["memory", "sqlite"])
def store(request, clean_test_data):
    """A fresh store for each backend; storage tests run once per backend."""
    s = storage.init_storage(TEST_DATA_DIR, request.param)
    yield s
    s.close()


@pytest.fixture
def client(clean_test_data):
    """API client on a fresh in-memory store."""
    from fastapi.testclient import TestClient

    from story_builder.app import create_app

    return TestClient(create_app(TEST_DATA_DIR, storage.MEMORY_URL))
