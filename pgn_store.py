# pgn_store.py
# Upsert accepted games into a relational table keyed by record id (SQLite or PostgreSQL).

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import (
    BigInteger,
    Column,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
    select,
)
from sqlalchemy.dialects import postgresql, sqlite

from pgn_record import Record


DEFAULT_TABLE = "pgn"

# (column, tag) pairs copied verbatim, "" when the tag is absent.
TEXT_TAGS = [
    ("event", "Event"),
    ("site", "Site"),
    ("round", "Round"),
    ("date", "Date"),
    ("time", "Time"),
    ("time_control", "TimeControl"),
    ("white", "White"),
    ("white_title", "WhiteTitle"),
    ("black", "Black"),
    ("black_title", "BlackTitle"),
    ("eco", "ECO"),
    ("opening", "Opening"),
    ("variation", "Variation"),
    ("result", "Result"),
]

# (column, tag) pairs parsed as integers, 0 when absent or not a number.
INT_TAGS = [
    ("white_elo", "WhiteElo"),
    ("white_fide", "WhiteFideId"),
    ("black_elo", "BlackElo"),
    ("black_fide", "BlackFideId"),
]

_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _int_or_zero(tag_value: Optional[str]) -> int:
    if not tag_value:
        return 0
    try:
        return int(tag_value)
    except ValueError:
        return 0


def signed64(n: int) -> int:
    """Unsigned 64-bit value -> two's complement, so it fits a BIGINT column."""
    return n - (1 << 64) if n >= (1 << 63) else n


def row_for(record: Record) -> Dict[str, Any]:
    row: Dict[str, Any] = {"id": record.id}
    for col, tag in TEXT_TAGS:
        row[col] = record.tags.get(tag, "")
    for col, tag in INT_TAGS:
        row[col] = _int_or_zero(record.tags.get(tag))
    row["tags"] = record.tags_text
    row["moves"] = " ".join(record.moves)
    row["fingerprint"] = signed64(record.fingerprint)
    return row


def build_table(name: str, metadata: MetaData) -> Table:
    return Table(
        name,
        metadata,
        Column("id", String(255), primary_key=True),
        Column("event", Text, server_default=""),
        Column("site", Text, server_default=""),
        Column("round", Text, server_default=""),
        Column("date", String(31), server_default=""),
        Column("time", String(31), server_default=""),
        Column("time_control", String(63), server_default=""),
        Column("white", String(255), nullable=False),
        Column("white_title", String(7), server_default=""),
        Column("white_elo", Integer, server_default="0"),
        Column("white_fide", Integer, server_default="0"),
        Column("black", String(255), nullable=False),
        Column("black_title", String(7), server_default=""),
        Column("black_elo", Integer, server_default="0"),
        Column("black_fide", Integer, server_default="0"),
        Column("eco", String(7), server_default=""),
        Column("opening", Text, server_default=""),
        Column("variation", Text, server_default=""),
        Column("result", String(15), server_default=""),
        Column("tags", Text, nullable=False),
        Column("moves", Text, nullable=False),
        Column("fingerprint", BigInteger, nullable=False, index=True),
    )


class GameStore:
    """Table of accepted games; the table is created on open if it does not exist."""

    def __init__(self, url: str, table: str = DEFAULT_TABLE) -> None:
        self.engine = create_engine(url)
        dialect = self.engine.dialect.name
        if dialect not in _INSERTS:
            self.engine.dispose()
            raise ValueError(f"Unsupported database dialect for upsert: {dialect}")
        self._insert = _INSERTS[dialect]

        self.metadata = MetaData()
        self.table = build_table(table, self.metadata)
        self.metadata.create_all(self.engine)

    def upsert_game(self, record: Record) -> None:
        row = row_for(record)
        stmt = self._insert(self.table).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.table.c.id],
            set_={k: stmt.excluded[k] for k in row if k != "id"},
        )
        with self.engine.begin() as conn:
            conn.execute(stmt)

    def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(self.table).where(self.table.c.id == record_id)
            ).mappings().first()
        return dict(row) if row is not None else None

    def count(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(self.table)).scalar_one()

    def close(self) -> None:
        self.engine.dispose()
