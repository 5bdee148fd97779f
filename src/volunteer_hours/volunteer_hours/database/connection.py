from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import mysql.connector

DEFAULT_CONNECT_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connection_timeout: int = DEFAULT_CONNECT_TIMEOUT_SECONDS

    @classmethod
    def from_settings(cls, db_config: Mapping[str, Any]) -> "DBConfig":
        """Build from a settings `DB_CONFIG` dict."""
        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config.get("password", "")),
            database=str(db_config["database"]),
            connection_timeout=int(db_config.get("connection_timeout", DEFAULT_CONNECT_TIMEOUT_SECONDS)),
        )


class DatabaseConnection:
    """Connection factory for the record store.

    Every repository call opens its own short-lived connection, so report
    metrics running on worker threads never share one.
    """

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=self._config.port,
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            connection_timeout=self._config.connection_timeout,
        )
