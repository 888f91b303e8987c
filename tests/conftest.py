"""Shared fixtures for the engine tests."""

import pytest

from textforge import Document, reset_config


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Each test starts from default configuration."""
    for key in ('TEXTFORGE_LOG_LEVEL', 'TEXTFORGE_LOG_FORMAT', 'TEXTFORGE_LOG_CONSOLE',
                'TEXTFORGE_LOG_FILE', 'TEXTFORGE_BATCH_WORKERS', 'TEXTFORGE_INDENT_WIDTH',
                'TEXTFORGE_SUMMARY_SENTENCES', 'TEXTFORGE_MAX_RUNS', 'TEXTFORGE_RUN_TTL'):
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_doc():
    """Factory for documents."""
    def _make(content: str, name: str = "doc.txt") -> Document:
        return Document(name, content)
    return _make
