"""Schema and demo-data setup used by ``create_app`` and ``scripts/``."""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from werkzeug.security import generate_password_hash

from ..common.datetime_utils import now_ms
from ..core.enums import Role
from .connection import DBConfig, DatabaseConnection

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("Admin Demo", "admin@example.com", "admin123", Role.ADMIN),
    ("Manager Demo", "manager@example.com", "manager123", Role.MANAGER),
    ("Employee Demo", "employee@example.com", "employee123", Role.EMPLOYEE),
]

# quoted strings, line comments, statement separators
_SQL_TOKEN = re.compile(r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|--[^\n]*|;", re.S)
_DB_SELECTION = re.compile(r"^\s*(CREATE\s+DATABASE|USE)\b", re.I)


@contextmanager
def _connection(db_config: dict, *, with_database: bool = True) -> Iterator:
    conn = DatabaseConnection(db_config).connect(with_database=with_database)
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split a script on ``;`` outside quotes, dropping ``--`` comments.

    ``CREATE DATABASE`` / ``USE`` statements are skipped so the same file can
    target whichever database the settings name.
    """
    parts: list[str] = []
    pos = 0
    for m in _SQL_TOKEN.finditer(sql):
        token = m.group(0)
        parts.append(sql[pos : m.start()])
        pos = m.end()
        if token.startswith("--"):
            continue
        if token != ";":
            parts.append(token)
            continue
        stmt = "".join(parts).strip()
        parts = []
        if stmt and not _DB_SELECTION.match(stmt):
            yield stmt

    parts.append(sql[pos:])
    tail = "".join(parts).strip()
    if tail and not _DB_SELECTION.match(tail):
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    name = DBConfig.parse(db_config).database
    with _connection(db_config, with_database=False) as conn:
        conn.cursor().execute(f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")


def apply_sql_file(db_config: dict, *, sql_path: str | Path) -> int:
    statements = list(iter_sql_statements(Path(sql_path).read_text(encoding="utf-8")))
    with _connection(db_config) as conn:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
    return len(statements)


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    count = apply_sql_file(db_config, sql_path=schema_path)
    logger.info("Applied %d schema statements from %s", count, schema_path)


def ensure_demo_users(db_config: dict) -> None:
    """Create (or reset) one demo account per role."""
    with _connection(db_config) as conn:
        cur = conn.cursor()
        for name, email, password, role in DEMO_USERS:
            cur.execute(
                """
                INSERT INTO users (name, email, password_hash, role, created_at)
                VALUES (%s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE name=VALUES(name), password_hash=VALUES(password_hash), role=VALUES(role)
                """,
                (name, email, generate_password_hash(password), role.value, now_ms()),
            )
    logger.info("Demo users ready: %s", ", ".join(u[1] for u in DEMO_USERS))


def list_tables(db_config: dict) -> list[str]:
    with _connection(db_config) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
