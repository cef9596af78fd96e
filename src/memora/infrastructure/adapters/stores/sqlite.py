"""
SQLite store adapters.

One database file holds cards, review logs and the precomputed stats tables.
Stats counters are changed with single INSERT ... ON CONFLICT DO UPDATE
statements, so concurrent events never lose an increment.
"""

import json
import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path

from memora.domain.models import (
    Card,
    DeckStats,
    Grade,
    MemoryState,
    ReviewLogEntry,
    UserStats,
    ValidationMethod,
)
from memora.domain.ports import CardStore, ReviewLogStore, StatsStore

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS cards (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    deck_id TEXT,
    question TEXT NOT NULL,
    answer TEXT NOT NULL,
    answer_embedding TEXT,
    memory_state TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_cards_user_id ON cards(user_id);
CREATE INDEX IF NOT EXISTS idx_cards_deck_id ON cards(deck_id);

CREATE TABLE IF NOT EXISTS review_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    card_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    submitted_answer TEXT NOT NULL,
    expected_answer TEXT NOT NULL,
    score REAL NOT NULL,
    method TEXT NOT NULL,
    grade INTEGER NOT NULL CHECK (grade >= 1 AND grade <= 4),
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_review_logs_card_id ON review_logs(card_id);

CREATE TABLE IF NOT EXISTS user_stats (
    user_id TEXT PRIMARY KEY,
    total_reviews INTEGER NOT NULL DEFAULT 0,
    correct_reviews INTEGER NOT NULL DEFAULT 0,
    days_studied INTEGER NOT NULL DEFAULT 0,
    last_active_date TEXT
);

CREATE TABLE IF NOT EXISTS deck_stats (
    deck_id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    total_cards INTEGER NOT NULL DEFAULT 0,
    total_reviews INTEGER NOT NULL DEFAULT 0,
    correct_reviews INTEGER NOT NULL DEFAULT 0,
    days_studied INTEGER NOT NULL DEFAULT 0,
    last_active_date TEXT
);
"""

_REVIEW_UPSERT = """
INSERT INTO {table} ({key_cols}, total_reviews, correct_reviews, days_studied, last_active_date)
VALUES ({key_params}, 1, :correct, 1, :review_date)
ON CONFLICT({key}) DO UPDATE SET
    total_reviews = total_reviews + 1,
    correct_reviews = correct_reviews + excluded.correct_reviews,
    days_studied = days_studied + CASE
        WHEN last_active_date IS NULL OR last_active_date <> excluded.last_active_date
        THEN 1 ELSE 0 END,
    last_active_date = excluded.last_active_date
"""


class SqliteDatabase:
    """Owns the connection and schema shared by the SQLite stores."""

    def __init__(self, path: Path | str = ":memory:"):
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.executescript(SCHEMA)
        logger.debug(f"SQLite database ready at {self.path}")

    def close(self) -> None:
        self.conn.close()


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


class SqliteCardStore(CardStore):
    def __init__(self, db: SqliteDatabase):
        self.db = db

    @staticmethod
    def _params(card: Card) -> dict:
        return {
            "id": card.id,
            "user_id": card.user_id,
            "deck_id": card.deck_id,
            "question": card.question,
            "answer": card.answer,
            "answer_embedding": (
                json.dumps(card.answer_embedding) if card.answer_embedding is not None else None
            ),
            "memory_state": json.dumps(card.memory.to_dict()),
            "created_at": card.created_at.isoformat(),
            "updated_at": card.updated_at.isoformat(),
        }

    @staticmethod
    def _row_to_card(row: sqlite3.Row) -> Card:
        embedding = row["answer_embedding"]
        return Card(
            id=row["id"],
            user_id=row["user_id"],
            deck_id=row["deck_id"],
            question=row["question"],
            answer=row["answer"],
            answer_embedding=json.loads(embedding) if embedding else None,
            memory=MemoryState.from_dict(json.loads(row["memory_state"])),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    async def find_by_id(self, card_id: str) -> Card | None:
        row = self.db.conn.execute("SELECT * FROM cards WHERE id = ?", (card_id,)).fetchone()
        return self._row_to_card(row) if row else None

    async def insert(self, card: Card) -> str:
        with self.db.conn:
            self.db.conn.execute(
                "INSERT INTO cards VALUES (:id, :user_id, :deck_id, :question, :answer, "
                ":answer_embedding, :memory_state, :created_at, :updated_at)",
                self._params(card),
            )
        return card.id

    async def bulk_insert(self, cards: list[Card]) -> list[str]:
        with self.db.conn:
            self.db.conn.executemany(
                "INSERT INTO cards VALUES (:id, :user_id, :deck_id, :question, :answer, "
                ":answer_embedding, :memory_state, :created_at, :updated_at)",
                [self._params(c) for c in cards],
            )
        return [c.id for c in cards]

    async def update(self, card: Card) -> None:
        with self.db.conn:
            self.db.conn.execute(
                "UPDATE cards SET user_id = :user_id, deck_id = :deck_id, question = :question, "
                "answer = :answer, memory_state = :memory_state, updated_at = :updated_at "
                "WHERE id = :id",
                self._params(card),
            )

    async def update_embedding(self, card_id: str, embedding: list[float]) -> None:
        with self.db.conn:
            self.db.conn.execute(
                "UPDATE cards SET answer_embedding = ? WHERE id = ?",
                (json.dumps(list(embedding)), card_id),
            )


class SqliteReviewLogStore(ReviewLogStore):
    def __init__(self, db: SqliteDatabase):
        self.db = db

    async def append(self, entry: ReviewLogEntry) -> None:
        with self.db.conn:
            self.db.conn.execute(
                "INSERT INTO review_logs (card_id, user_id, submitted_answer, expected_answer, "
                "score, method, grade, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    entry.card_id,
                    entry.user_id,
                    entry.submitted_answer,
                    entry.expected_answer,
                    entry.score,
                    entry.method.value,
                    int(entry.grade),
                    entry.timestamp.isoformat(),
                ),
            )

    async def list_for_card(self, card_id: str) -> list[ReviewLogEntry]:
        rows = self.db.conn.execute(
            "SELECT * FROM review_logs WHERE card_id = ? ORDER BY id ASC", (card_id,)
        ).fetchall()
        return [
            ReviewLogEntry(
                card_id=row["card_id"],
                user_id=row["user_id"],
                submitted_answer=row["submitted_answer"],
                expected_answer=row["expected_answer"],
                score=row["score"],
                method=ValidationMethod(row["method"]),
                grade=Grade(row["grade"]),
                timestamp=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]


class SqliteStatsStore(StatsStore):
    def __init__(self, db: SqliteDatabase):
        self.db = db

    async def get_or_create_user(self, user_id: str) -> UserStats:
        with self.db.conn:
            self.db.conn.execute(
                "INSERT INTO user_stats (user_id) VALUES (?) ON CONFLICT(user_id) DO NOTHING",
                (user_id,),
            )
        row = self.db.conn.execute(
            "SELECT * FROM user_stats WHERE user_id = ?", (user_id,)
        ).fetchone()
        return UserStats(
            user_id=row["user_id"],
            total_reviews=row["total_reviews"],
            correct_reviews=row["correct_reviews"],
            days_studied=row["days_studied"],
            last_active_date=_parse_date(row["last_active_date"]),
        )

    async def get_or_create_deck(self, deck_id: str, user_id: str) -> DeckStats:
        with self.db.conn:
            self.db.conn.execute(
                "INSERT INTO deck_stats (deck_id, user_id) VALUES (?, ?) "
                "ON CONFLICT(deck_id) DO NOTHING",
                (deck_id, user_id),
            )
        row = self.db.conn.execute(
            "SELECT * FROM deck_stats WHERE deck_id = ?", (deck_id,)
        ).fetchone()
        return DeckStats(
            deck_id=row["deck_id"],
            user_id=row["user_id"],
            total_card_count=row["total_cards"],
            total_reviews=row["total_reviews"],
            correct_reviews=row["correct_reviews"],
            days_studied=row["days_studied"],
            last_active_date=_parse_date(row["last_active_date"]),
        )

    async def increment_user_after_review(
        self, user_id: str, is_correct: bool, review_date: date
    ) -> None:
        sql = _REVIEW_UPSERT.format(
            table="user_stats", key_cols="user_id", key_params=":user_id", key="user_id"
        )
        with self.db.conn:
            self.db.conn.execute(
                sql,
                {
                    "user_id": user_id,
                    "correct": int(is_correct),
                    "review_date": review_date.isoformat(),
                },
            )

    async def increment_deck_after_review(
        self, deck_id: str, user_id: str, is_correct: bool, review_date: date
    ) -> None:
        sql = _REVIEW_UPSERT.format(
            table="deck_stats",
            key_cols="deck_id, user_id",
            key_params=":deck_id, :user_id",
            key="deck_id",
        )
        with self.db.conn:
            self.db.conn.execute(
                sql,
                {
                    "deck_id": deck_id,
                    "user_id": user_id,
                    "correct": int(is_correct),
                    "review_date": review_date.isoformat(),
                },
            )

    async def adjust_card_count(self, deck_id: str, user_id: str, delta: int) -> None:
        with self.db.conn:
            self.db.conn.execute(
                "INSERT INTO deck_stats (deck_id, user_id, total_cards) "
                "VALUES (:deck_id, :user_id, max(0, :delta)) "
                "ON CONFLICT(deck_id) DO UPDATE SET total_cards = max(0, total_cards + :delta)",
                {"deck_id": deck_id, "user_id": user_id, "delta": delta},
            )
