"""Application settings read from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server settings."""

    name: str = ""
    host: str = ""
    port: str = ""
    secret_key: str = field(default="", repr=False)


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection settings."""

    host: str = ""
    port: str = ""
    user: str = ""
    password: str = field(default="", repr=False)
    name: str = ""


@dataclass(frozen=True)
class Config:
    """Complete application configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """Build a Config from environment variables; missing ones become empty strings."""
    env = os.environ if environ is None else environ

    def get(key: str) -> str:
        return env.get(key, "")

    return Config(
        server=ServerConfig(
            name=get("APP_NAME"),
            host=get("APP_HOST"),
            port=get("APP_PORT"),
            secret_key=get("APP_SECRET_KEY"),
        ),
        database=DatabaseConfig(
            host=get("DB_HOST"),
            port=get("DB_PORT"),
            user=get("DB_USER"),
            password=get("DB_PASS"),
            name=get("DB_NAME"),
        ),
    )