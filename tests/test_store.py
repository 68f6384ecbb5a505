"""
Tests for SQL persistence (SQLite).
"""
from __future__ import annotations

import pytest

from linkcrawler.errors import StorageError
from linkcrawler import store as store_module
from linkcrawler.store import LinkStore

A = "https://a.test/"
B = "https://b.test/"
C = "https://c.test/"


@pytest.fixture
def store(tmp_path):
    s = LinkStore(f"sqlite:///{tmp_path / 'links.db'}")
    yield s
    s.close()


def test_store_and_read_back(store):
    added = store.store_links([B, C], {B: A, C: B})

    assert added == 2
    assert [row[1:] for row in store.stored_links()] == [(B, A), (C, B)]


def test_existing_urls_are_left_alone(store):
    store.store_links([B], {B: A})
    added = store.store_links([B, C], {B: C, C: A})

    assert added == 1
    rows = {url: parent for _, url, parent in store.stored_links()}
    assert rows == {B: A, C: A}


def test_missing_parent_stored_as_null(store):
    store.store_links([A], {})
    assert store.stored_links()[0][1:] == (A, None)


def test_empty_batch(store):
    assert store.store_links([], {}) == 0
    assert store.stored_links() == []


def test_table_survives_reopen(tmp_path):
    url = f"sqlite:///{tmp_path / 'links.db'}"
    first = LinkStore(url)
    first.store_links([B], {B: A})
    first.close()

    second = LinkStore(url)
    assert len(second.stored_links()) == 1
    second.close()


def test_bad_database_url():
    with pytest.raises(StorageError):
        LinkStore("not a database url")


def test_missing_driver_is_storage_error(monkeypatch):
    def no_driver(*args, **kwargs):
        raise ModuleNotFoundError("No module named 'psycopg'", name="psycopg")

    monkeypatch.setattr(store_module, "create_engine", no_driver)
    with pytest.raises(StorageError, match="postgres"):
        LinkStore("postgresql://u:p@127.0.0.1:1/db")


@pytest.mark.parametrize("url,expected", [
    ("postgresql://u@h/db", "postgresql+psycopg://u@h/db"),
    ("postgres://u@h/db", "postgresql+psycopg://u@h/db"),
    ("postgresql+psycopg2://u@h/db", "postgresql+psycopg2://u@h/db"),
    ("sqlite:///links.db", "sqlite:///links.db"),
])
def test_postgres_urls_use_psycopg(url, expected):
    assert store_module._engine_url(url) == expected
