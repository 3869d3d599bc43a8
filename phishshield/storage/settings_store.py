"""SQLite key-value store for extension settings and page link stats."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

import aiosqlite

from ..constants import (
    DEFAULT_SETTINGS,
    SETTING_EXTRACTED_LINKS,
    SETTING_PAGE_LINKS_STATS,
)

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Settings store unavailable or unreadable."""

    pass


class SettingsStore:
    """Async SQLite key-value store; values are JSON encoded."""

    def __init__(self, db_path: Path | str):
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()
        self._mapping_lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._connection is not None

    async def connect(self):
        """Establish database connection and create tables."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row
        await self._create_tables()

    async def close(self):
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def _create_tables(self):
        async with self._lock:
            await self._connection.executescript(
                """
                    CREATE TABLE IF NOT EXISTS kv (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    );
                """
            )
            await self._connection.commit()

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise StorageError("Settings store is not connected")
        return self._connection

    async def get(self, keys: Iterable[str]) -> dict[str, Any]:
        """Return stored values for the given keys; absent keys are omitted."""
        wanted = list(keys)
        if not wanted:
            return {}
        conn = self._require_connection()
        placeholders = ",".join("?" for _ in wanted)
        try:
            async with self._lock:
                cursor = await conn.execute(
                    f"SELECT key, value FROM kv WHERE key IN ({placeholders})",
                    wanted,
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to read settings: {e}") from e

        result: dict[str, Any] = {}
        for row in rows:
            try:
                result[row["key"]] = json.loads(row["value"])
            except json.JSONDecodeError:
                logger.warning("Ignoring corrupt value for setting %s", row["key"])
        return result

    async def get_value(self, key: str, default: Any = None) -> Any:
        data = await self.get([key])
        return data.get(key, default)

    async def get_bool(self, key: str, default: bool = True) -> bool:
        """Read a boolean setting; absent keys fall back to the default."""
        value = await self.get_value(key, default)
        if isinstance(value, bool):
            return value
        return default

    async def set(self, values: dict[str, Any]) -> None:
        """Insert or overwrite the given keys."""
        if not values:
            return
        conn = self._require_connection()
        rows = [(key, json.dumps(value)) for key, value in values.items()]
        try:
            async with self._lock:
                await conn.executemany(
                    """
                    INSERT INTO kv (key, value, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    rows,
                )
                await conn.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to write settings: {e}") from e

    async def initialize_defaults(self) -> dict[str, Any]:
        """Write default settings for keys not yet present. Returns what was written."""
        existing = await self.get(DEFAULT_SETTINGS.keys())
        missing = {k: v for k, v in DEFAULT_SETTINGS.items() if k not in existing}
        await self.set(missing)
        return missing

    async def get_settings(self) -> dict[str, Any]:
        """All default-backed settings with defaults applied for absent keys."""
        stored = await self.get(DEFAULT_SETTINGS.keys())
        merged = dict(DEFAULT_SETTINGS)
        merged.update(stored)
        return merged

    async def _update_mapping(self, key: str, entry_key: str, entry_value: Any) -> None:
        async with self._mapping_lock:
            current = await self.get_value(key, {})
            if not isinstance(current, dict):
                current = {}
            current[entry_key] = entry_value
            await self.set({key: current})

    async def get_page_links_stats(self) -> dict[str, dict]:
        value = await self.get_value(SETTING_PAGE_LINKS_STATS, {})
        return value if isinstance(value, dict) else {}

    async def save_page_links_stats(self, page_url: str, stats: dict) -> None:
        """Overwrite the stats record for one page."""
        await self._update_mapping(SETTING_PAGE_LINKS_STATS, page_url, dict(stats))

    async def get_extracted_links(self) -> dict[str, list[str]]:
        value = await self.get_value(SETTING_EXTRACTED_LINKS, {})
        return value if isinstance(value, dict) else {}

    async def save_extracted_links(self, page_url: str, links: list[str]) -> None:
        await self._update_mapping(SETTING_EXTRACTED_LINKS, page_url, list(links))
