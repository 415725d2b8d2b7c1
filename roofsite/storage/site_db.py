"""
Site database abstraction layer.

Provides:
- SQLite storage (WAL mode) for sites, leads and subscriptions
- Lookups needed by lead intake and publishing
- A seam for moving to a hosted database later
"""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import aiosqlite
from loguru import logger

from roofsite.config.settings import settings

_SCHEMA = """
CREATE TABLE IF NOT EXISTS sites (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    published INTEGER NOT NULL DEFAULT 0,
    published_at TEXT,
    domain TEXT,
    domain_type TEXT
);
CREATE TABLE IF NOT EXISTS leads (
    id TEXT PRIMARY KEY,
    site_id TEXT NOT NULL REFERENCES sites(id),
    name TEXT NOT NULL,
    phone TEXT NOT NULL,
    email TEXT,
    message TEXT,
    source TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS subscriptions (
    user_id TEXT PRIMARY KEY,
    plan TEXT NOT NULL,
    status TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_sites_user ON sites(user_id, published);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _site_row(row: aiosqlite.Row) -> Dict[str, Any]:
    site = dict(row)
    site["published"] = bool(site["published"])
    return site


class SiteDatabase:
    """Storage for sites, leads and subscriptions"""

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize site database

        Args:
            db_path: Path to SQLite database (defaults to settings.site_db_path_resolved)
        """
        self._conn: Optional[aiosqlite.Connection] = None
        self.db_path = Path(db_path or settings.site_db_path_resolved)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    async def async_init(self):
        """Open the connection and create tables - call this from lifespan startup"""
        if self._conn is not None:
            return

        conn = await aiosqlite.connect(str(self.db_path), timeout=10.0)
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA busy_timeout=5000")
        await conn.executescript(_SCHEMA)
        await conn.commit()
        self._conn = conn
        logger.info(f"Site database ready at {self.db_path}")

    async def close(self):
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("SiteDatabase not initialized - call async_init() first")
        return self._conn

    async def upsert_site(self, site_id: str, user_id: str, published: bool = False) -> None:
        await self.conn.execute(
            "INSERT INTO sites (id, user_id, published) VALUES (?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET user_id = excluded.user_id, published = excluded.published",
            (site_id, user_id, int(published)),
        )
        await self.conn.commit()

    async def get_site(self, site_id: str) -> Optional[Dict[str, Any]]:
        async with self.conn.execute("SELECT * FROM sites WHERE id = ?", (site_id,)) as cursor:
            row = await cursor.fetchone()
        return _site_row(row) if row else None

    async def count_published_sites(self, user_id: str) -> int:
        async with self.conn.execute(
            "SELECT COUNT(*) FROM sites WHERE user_id = ? AND published = 1", (user_id,)
        ) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else 0

    async def publish_site(self, site_id: str, domain: Optional[str], domain_type: str) -> Dict[str, Any]:
        await self.conn.execute(
            "UPDATE sites SET published = 1, published_at = ?, domain = ?, domain_type = ? WHERE id = ?",
            (_now(), domain, domain_type, site_id),
        )
        await self.conn.commit()
        site = await self.get_site(site_id)
        if site is None:
            raise RuntimeError("Failed to publish site")
        return site

    async def insert_lead(
        self,
        site_id: str,
        name: str,
        phone: str,
        email: Optional[str],
        message: Optional[str],
        source: str,
    ) -> str:
        lead_id = str(uuid.uuid4())
        await self.conn.execute(
            "INSERT INTO leads (id, site_id, name, phone, email, message, source, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (lead_id, site_id, name, phone, email, message, source, _now()),
        )
        await self.conn.commit()
        return lead_id

    async def get_lead(self, lead_id: str) -> Optional[Dict[str, Any]]:
        async with self.conn.execute("SELECT * FROM leads WHERE id = ?", (lead_id,)) as cursor:
            row = await cursor.fetchone()
        return dict(row) if row else None

    async def set_subscription(self, user_id: str, plan: str, status: str = "active") -> None:
        await self.conn.execute(
            "INSERT INTO subscriptions (user_id, plan, status) VALUES (?, ?, ?) "
            "ON CONFLICT(user_id) DO UPDATE SET plan = excluded.plan, status = excluded.status",
            (user_id, plan, status),
        )
        await self.conn.commit()

    async def get_subscription(self, user_id: str) -> Optional[Dict[str, Any]]:
        async with self.conn.execute(
            "SELECT plan, status FROM subscriptions WHERE user_id = ?", (user_id,)
        ) as cursor:
            row = await cursor.fetchone()
        return dict(row) if row else None
