# pgn_record.py
# Records and the per-call outcomes of PgnReader.read_next().

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Union


@dataclass
class Record:
    id: str
    tags: Dict[str, str] = field(default_factory=dict)
    tags_text: str = ""
    moves_text: str = ""

    # Filled in only once the record has been accepted.
    moves: List[str] = field(default_factory=list)
    fingerprint: int = 0

    @classmethod
    def new(cls, prefix: str, index: int) -> "Record":
        return cls(id=f"{prefix}.{index}")

    def add_tag(self, key: str, value: str, line: str) -> None:
        self.tags[key] = value
        self.tags_text += line + "\n"

    def add_moves(self, line: str) -> None:
        self.moves_text += line + "\n"


@dataclass
class Game:
    record: Record


@dataclass
class BadRecord:
    reason: str
    tags_text: str
    moves_text: str
    line_number: int = 0

    def __str__(self) -> str:
        return (
            f"Line {self.line_number}: invalid pgn: {self.reason}\n"
            f"{self.tags_text}\n{self.moves_text}"
        )


@dataclass(frozen=True)
class Ended:
    pass


@dataclass
class Error:
    message: str

    def __str__(self) -> str:
        return self.message


ENDED = Ended()

Outcome = Union[Game, BadRecord, Ended, Error]
