from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote_plus

from pymongo import MongoClient
from pymongo.database import Database

logger = logging.getLogger(__name__)


@dataclass
class MongoConfig:
    host: str
    port: int
    user: str
    password: str
    database: str

    @property
    def uri(self) -> str:
        if self.user and self.password:
            return f"mongodb://{quote_plus(self.user)}:{quote_plus(self.password)}@{self.host}:{self.port}/{self.database}"
        return f"mongodb://{self.host}:{self.port}/{self.database}"

    @property
    def display(self) -> str:
        who = f"{self.user}@" if self.user else ""
        return f"{who}{self.host}:{self.port}/{self.database}"


def as_mongo_config(db_config: dict) -> MongoConfig:
    return MongoConfig(
        host=str(db_config.get("host", "127.0.0.1")),
        port=int(db_config.get("port", 27017)),
        user=str(db_config.get("user") or ""),
        password=str(db_config.get("password") or ""),
        database=str(db_config.get("database", "class")),
    )


class DatabaseConnection:
    """Owns one MongoClient with an explicit lifecycle.

    Created by the container and injected into repositories; call ``close()``
    on shutdown. pymongo pools connections internally, so one client per
    process is enough.
    """

    def __init__(self, config: MongoConfig, *, client: Optional[MongoClient] = None):
        self._config = config
        self._client = client

    @property
    def config(self) -> MongoConfig:
        return self._config

    def connect(self) -> MongoClient:
        if self._client is None:
            self._client = MongoClient(self._config.uri, serverSelectionTimeoutMS=5000, tz_aware=False)
            logger.info("MongoDB client created for %s", self._config.display)
        return self._client

    @property
    def db(self) -> Database:
        return self.connect()[self._config.database]

    def ping(self) -> bool:
        """Health-check: True when the server answers a ping."""
        try:
            self.connect().admin.command("ping")
            return True
        except Exception:
            logger.warning("MongoDB ping failed for %s", self._config.display, exc_info=True)
            return False

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("MongoDB client closed")
