from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    """MySQL settings as found in ``config.<env>.DB_CONFIG``."""

    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "timeclock"

    @classmethod
    def parse(cls, raw: "DBConfig | Mapping[str, Any]") -> "DBConfig":
        if isinstance(raw, DBConfig):
            return raw
        # unknown keys are ignored; empty values fall back to the defaults
        known = {k: raw[k] for k in ("host", "port", "user", "password", "database") if raw.get(k) not in (None, "")}
        if "port" in known:
            known["port"] = int(known["port"])
        return cls(**known)

    def connect_args(self, *, with_database: bool = True) -> dict:
        args = {"host": self.host, "port": self.port, "user": self.user, "password": self.password}
        if with_database:
            args["database"] = self.database
        return args


class DatabaseConnection:
    """Factory for short-lived MySQL connections.

    Each connection is one transaction (see ``db_cursor``), so autocommit is off.
    """

    def __init__(self, config: "DBConfig | Mapping[str, Any]"):
        self.config = DBConfig.parse(config)

    def connect(self, *, with_database: bool = True):
        return mysql.connector.connect(autocommit=False, **self.config.connect_args(with_database=with_database))
