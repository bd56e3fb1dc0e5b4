"""MySQL connection settings and the factory every repository shares."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

import mysql.connector

_DEFAULTS: dict[str, Any] = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "timekeeping_db",
}


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        merged = {**_DEFAULTS, **{k: v for k, v in (db_config or {}).items() if k in _DEFAULTS and v is not None}}
        return cls(
            host=str(merged["host"]),
            port=int(merged["port"]),
            user=str(merged["user"]),
            password=str(merged["password"]),
            database=str(merged["database"]),
        )

    def connect_args(self, *, with_database: bool = True) -> dict[str, Any]:
        args = asdict(self)
        if not with_database:
            args.pop("database")
        return args


class DatabaseConnection:
    """Opens a fresh connection per unit of work.

    One instance per process; repositories and the advisory lock manager
    all call ``connect()`` on it.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self.config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None or cls._instance.config != config:
            cls._instance = cls(config)
        return cls._instance

    def connect(self, *, with_database: bool = True):
        return mysql.connector.connect(**self.config.connect_args(with_database=with_database))
