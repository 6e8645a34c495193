"""SQLite-backed block store used by the webhook host."""

import os
import sqlite3
import logging
import uuid as uuidlib
from typing import Optional

from linktitles.host import Block

BLOCKS_DB_PATH = os.getenv("BLOCKS_DB_PATH", "data/blocks.sqlite")
logger = logging.getLogger(__name__)


def _init_db(path: str) -> None:
    """Ensure the SQLite database and required tables exist."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with sqlite3.connect(path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS blocks (
                uuid TEXT PRIMARY KEY,
                parent_uuid TEXT,
                page_name TEXT,
                content TEXT NOT NULL DEFAULT '',
                position INTEGER NOT NULL DEFAULT 0
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS selection (
                uuid TEXT PRIMARY KEY,
                position INTEGER NOT NULL
            )
            """
        )
        conn.commit()


class SqliteBlockStore:
    def __init__(self, db_path: str = BLOCKS_DB_PATH):
        self.db_path = db_path
        _init_db(db_path)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _load(self, conn, uuid: str) -> Optional[Block]:
        row = conn.execute(
            "SELECT uuid, content, page_name, parent_uuid FROM blocks WHERE uuid = ?",
            (uuid,),
        ).fetchone()
        if row is None:
            return None
        children = [
            Block(uuid=c_uuid, content=c_content, parent_uuid=uuid)
            for c_uuid, c_content in conn.execute(
                "SELECT uuid, content FROM blocks WHERE parent_uuid = ? ORDER BY position",
                (uuid,),
            )
        ]
        return Block(
            uuid=row[0],
            content=row[1],
            children=children,
            page_name=row[2],
            parent_uuid=row[3],
        )

    async def get_user_configs(self) -> dict:
        try:
            with self._connect() as conn:
                return dict(conn.execute("SELECT key, value FROM settings").fetchall())
        except Exception:
            logger.exception("Failed to read settings from %s", self.db_path)
            return {}

    async def set_config(self, key: str, value: Optional[str]) -> None:
        try:
            with self._connect() as conn:
                if value is None:
                    conn.execute("DELETE FROM settings WHERE key = ?", (key,))
                else:
                    conn.execute(
                        "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                        (key, value),
                    )
                conn.commit()
        except Exception:
            logger.exception("Failed to save setting %s", key)

    async def get_block(self, uuid: str) -> Optional[Block]:
        """Load a block with its direct children, or None if it is gone."""
        try:
            with self._connect() as conn:
                return self._load(conn, uuid)
        except Exception:
            logger.exception("Failed to load block %s", uuid)
            return None

    async def create_block(
        self,
        content: str = "",
        *,
        parent_uuid: Optional[str] = None,
        page_name: Optional[str] = None,
        uuid: Optional[str] = None,
    ) -> Block:
        uuid = uuid or str(uuidlib.uuid4())
        with self._connect() as conn:
            (position,) = conn.execute(
                "SELECT COALESCE(MAX(position) + 1, 0) FROM blocks WHERE parent_uuid IS ?",
                (parent_uuid,),
            ).fetchone()
            conn.execute(
                """
                INSERT INTO blocks (uuid, parent_uuid, page_name, content, position)
                VALUES (?, ?, ?, ?, ?)
                """,
                (uuid, parent_uuid, page_name, content, position),
            )
            conn.commit()
        return Block(uuid=uuid, content=content, page_name=page_name, parent_uuid=parent_uuid)

    async def update_block(self, uuid: str, content: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute("UPDATE blocks SET content = ? WHERE uuid = ?", (content, uuid))
                conn.commit()
        except Exception:
            logger.exception("Failed to update block %s", uuid)

    async def insert_block(
        self,
        parent_uuid: str,
        content: str,
        *,
        before: bool = False,
        sibling: bool = False,
        focus: bool = True,
    ) -> Optional[Block]:
        """Insert a child (or sibling) of ``parent_uuid``.

        Children are appended unless ``before`` is set. ``focus`` only matters
        to an interactive host and is ignored here.
        """
        try:
            with self._connect() as conn:
                anchor = conn.execute(
                    "SELECT parent_uuid, position FROM blocks WHERE uuid = ?",
                    (parent_uuid,),
                ).fetchone()
                if anchor is None:
                    return None
                target_parent = anchor[0] if sibling else parent_uuid
                if sibling:
                    position = anchor[1] if before else anchor[1] + 1
                elif before:
                    position = 0
                else:
                    (position,) = conn.execute(
                        "SELECT COALESCE(MAX(position) + 1, 0) FROM blocks WHERE parent_uuid IS ?",
                        (target_parent,),
                    ).fetchone()
                conn.execute(
                    "UPDATE blocks SET position = position + 1 WHERE parent_uuid IS ? AND position >= ?",
                    (target_parent, position),
                )
                new_uuid = str(uuidlib.uuid4())
                conn.execute(
                    """
                    INSERT INTO blocks (uuid, parent_uuid, page_name, content, position)
                    VALUES (?, ?, NULL, ?, ?)
                    """,
                    (new_uuid, target_parent, content, position),
                )
                conn.commit()
            return Block(uuid=new_uuid, content=content, parent_uuid=target_parent)
        except Exception:
            logger.exception("Failed to insert block under %s", parent_uuid)
            return None

    async def select(self, uuids) -> None:
        """Replace the current selection."""
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM selection")
                conn.executemany(
                    "INSERT OR IGNORE INTO selection (uuid, position) VALUES (?, ?)",
                    [(u, i) for i, u in enumerate(uuids)],
                )
                conn.commit()
        except Exception:
            logger.exception("Failed to store selection")

    async def get_selected_blocks(self) -> list:
        try:
            with self._connect() as conn:
                rows = conn.execute("SELECT uuid FROM selection ORDER BY position").fetchall()
                blocks = [self._load(conn, u) for (u,) in rows]
            return [b for b in blocks if b is not None]
        except Exception:
            logger.exception("Failed to load selected blocks")
            return []
