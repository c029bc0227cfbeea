"""Shared test fixtures for SQLAssist."""

from __future__ import annotations

import json
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text

from sqlassist.core.connection import ConnectionDescriptor, DatabaseConnection, DatabaseType
from sqlassist.llm.provider import ModelProvider

USER_COUNT = 50

SHOP_DDL = [
    """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY,
        name VARCHAR(100) NOT NULL,
        email VARCHAR(255),
        created_at TIMESTAMP,
        CONSTRAINT uq_users_email UNIQUE (email)
    )
    """,
    """
    CREATE TABLE orders (
        id INTEGER PRIMARY KEY,
        user_id INTEGER NOT NULL,
        total NUMERIC(10, 2),
        status VARCHAR(20) DEFAULT 'pending',
        CONSTRAINT fk_orders_user FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
    )
    """,
    "CREATE INDEX idx_orders_status ON orders (status)",
    "CREATE VIEW user_emails AS SELECT id, email FROM users",
]


def _seed_shop(path: Path) -> None:
    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        for statement in SHOP_DDL:
            conn.execute(text(statement))
        conn.execute(
            text("INSERT INTO users (id, name, email) VALUES (:id, :name, :email)"),
            [
                {"id": i, "name": f"User {i}", "email": f"user{i}@example.com"}
                for i in range(1, USER_COUNT + 1)
            ],
        )
        conn.execute(
            text("INSERT INTO orders (user_id, total, status) VALUES (:user_id, :total, :status)"),
            [
                {"user_id": (i % USER_COUNT) + 1, "total": i * 10, "status": "paid"}
                for i in range(1, 21)
            ],
        )
    engine.dispose()


@pytest.fixture
def shop_db_path(tmp_path: Path) -> Path:
    """SQLite file seeded with a users/orders schema (50 users, 20 orders)."""
    path = tmp_path / "shop.db"
    _seed_shop(path)
    return path


@pytest.fixture
def shop_url(shop_db_path: Path) -> str:
    """SQLAlchemy URL of the seeded SQLite database."""
    return f"sqlite:///{shop_db_path}"


@pytest.fixture
def shop_descriptor(shop_db_path: Path) -> ConnectionDescriptor:
    """Connection descriptor for the seeded SQLite database."""
    return ConnectionDescriptor(type=DatabaseType.SQLITE, database=str(shop_db_path))


@pytest.fixture
def shop_connection(shop_url: str) -> Generator[DatabaseConnection, None, None]:
    """Open DatabaseConnection to the seeded SQLite database."""
    connection = DatabaseConnection(shop_url)
    yield connection
    connection.close()


def gemini_envelope(text_payload: str) -> str:
    """Gemini generateContent response wrapping ``text_payload``."""
    return json.dumps(
        {"candidates": [{"content": {"parts": [{"text": text_payload}], "role": "model"}}]}
    )


def openai_envelope(text_payload: str) -> str:
    """Chat completion response wrapping ``text_payload``."""
    return json.dumps(
        {"choices": [{"index": 0, "message": {"role": "assistant", "content": text_payload}}]}
    )


class FakeProvider(ModelProvider):
    """In-memory provider returning canned Gemini envelopes."""

    def __init__(self, payload: str = "", error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error
        self.prompts: list[str] = []
        self.system_prompts: list[str | None] = []

    def generate(self, prompt: str, system_prompt: str | None = None) -> str:
        self.prompts.append(prompt)
        self.system_prompts.append(system_prompt)
        if self.error is not None:
            raise self.error
        return gemini_envelope(self.payload)

    @property
    def envelope_format(self) -> str:
        return "gemini"

    @property
    def model_name(self) -> str:
        return "fake-model"


@pytest.fixture
def clean_model_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove model API keys from the environment."""
    for name in (
        "GEMINI_API_KEY",
        "OPENAI_API_KEY",
        "SQLASSIST_GEMINI_API_KEY",
        "SQLASSIST_OPENAI_API_KEY",
        "SQLASSIST_MODEL_PROVIDER",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_provider() -> type[FakeProvider]:
    """Factory for in-memory model providers."""
    return FakeProvider


@pytest.fixture
def make_gemini_envelope() -> Callable[[str], str]:
    """Builds Gemini response envelopes."""
    return gemini_envelope


@pytest.fixture
def make_openai_envelope() -> Callable[[str], str]:
    """Builds chat completion response envelopes."""
    return openai_envelope
