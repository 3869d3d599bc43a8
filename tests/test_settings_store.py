"""Tests for the SQLite settings store."""

from __future__ import annotations

import pytest

from phishshield.constants import DEFAULT_SETTINGS
from phishshield.storage import SettingsStore, StorageError


async def _store(tmp_path) -> SettingsStore:
    store = SettingsStore(tmp_path / "state" / "phishshield.db")
    await store.connect()
    return store


@pytest.mark.asyncio
async def test_initialize_defaults_only_fills_missing_keys(tmp_path):
    store = await _store(tmp_path)
    await store.set({"autoScan": False})

    written = await store.initialize_defaults()

    assert "autoScan" not in written
    assert written["showNotifications"] is True
    settings = await store.get_settings()
    assert settings["autoScan"] is False
    assert settings["scanLinks"] is True
    assert await store.initialize_defaults() == {}
    await store.close()


@pytest.mark.asyncio
async def test_values_survive_reconnect(tmp_path):
    store = await _store(tmp_path)
    await store.set({"showNotifications": False, "custom": {"nested": [1, 2]}})
    await store.close()

    reopened = await _store(tmp_path)

    assert await reopened.get(["showNotifications", "custom", "absent"]) == {
        "showNotifications": False,
        "custom": {"nested": [1, 2]},
    }
    await reopened.close()


@pytest.mark.asyncio
async def test_get_bool_falls_back_for_absent_or_non_bool(tmp_path):
    store = await _store(tmp_path)
    await store.set({"autoScan": "yes"})

    assert await store.get_bool("autoScan", True) is True
    assert await store.get_bool("missing", False) is False
    await store.close()


@pytest.mark.asyncio
async def test_page_links_stats_replace_per_page(tmp_path):
    store = await _store(tmp_path)
    await store.save_page_links_stats("https://a.test/", {"total": 3, "safe": 3, "suspicious": 0, "malicious": 0})
    await store.save_page_links_stats("https://b.test/", {"total": 1, "safe": 0, "suspicious": 0, "malicious": 1})
    await store.save_page_links_stats("https://a.test/", {"total": 2, "safe": 1, "suspicious": 1, "malicious": 0})

    stats = await store.get_page_links_stats()

    assert stats == {
        "https://a.test/": {"total": 2, "safe": 1, "suspicious": 1, "malicious": 0},
        "https://b.test/": {"total": 1, "safe": 0, "suspicious": 0, "malicious": 1},
    }
    await store.close()


@pytest.mark.asyncio
async def test_extracted_links_keyed_by_page(tmp_path):
    store = await _store(tmp_path)
    await store.save_extracted_links("https://a.test/", ["https://x.test/", "https://y.test/"])

    assert await store.get_extracted_links() == {"https://a.test/": ["https://x.test/", "https://y.test/"]}
    await store.close()


@pytest.mark.asyncio
async def test_unconnected_store_raises_storage_error(tmp_path):
    store = SettingsStore(tmp_path / "never.db")

    with pytest.raises(StorageError):
        await store.get_settings()
    with pytest.raises(StorageError):
        await store.set({"autoScan": True})


@pytest.mark.asyncio
async def test_fresh_store_reports_defaults(tmp_path):
    store = await _store(tmp_path)

    assert await store.get_settings() == DEFAULT_SETTINGS
    await store.close()
