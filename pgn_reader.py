# pgn_reader.py
# Streaming PGN reader: one validated record per call, in document order.
#
# Record boundaries are found by lookahead: a record ends when a tag line shows up
# while reading movetext (that tag line starts the next record), or at end of stream.
# Blank lines are separators only and never end a record on their own.

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, Optional, TextIO, Tuple, Union

from pgn_record import ENDED, BadRecord, Error, Game, Outcome, Record
from pgn_source import READ_ERRORS, archive_prefix, open_pgn_text
from pgn_validate import validate_record


TAG_RE = re.compile(r'\[(\w+)\s+"([^"]*)"\]')


class ReaderState(Enum):
    START = "start"
    TAGS = "tags"
    MOVES = "moves"
    ENDED = "ended"


class LineKind(Enum):
    BLANK = "blank"
    TAG = "tag"
    MOVES = "moves"
    EOF = "eof"


class Action(Enum):
    SKIP = "skip"
    ADD_TAG = "add_tag"
    START_MOVES = "start_moves"
    ADD_MOVES = "add_moves"
    SPLIT = "split"            # finish current record, next one begins with this tag
    FINISH = "finish"          # finish current record at end of stream
    TRUNCATED = "truncated"
    DONE = "done"
    UNEXPECTED = "unexpected"


S, K, A = ReaderState, LineKind, Action

# Every (state, line kind) pair has exactly one entry.
TRANSITIONS: Dict[Tuple[ReaderState, LineKind], Tuple[Action, ReaderState]] = {
    (S.START, K.BLANK): (A.SKIP, S.START),
    (S.START, K.TAG): (A.ADD_TAG, S.TAGS),
    (S.START, K.MOVES): (A.UNEXPECTED, S.ENDED),
    (S.START, K.EOF): (A.DONE, S.ENDED),

    (S.TAGS, K.BLANK): (A.SKIP, S.TAGS),
    (S.TAGS, K.TAG): (A.ADD_TAG, S.TAGS),
    (S.TAGS, K.MOVES): (A.START_MOVES, S.MOVES),
    (S.TAGS, K.EOF): (A.TRUNCATED, S.ENDED),

    (S.MOVES, K.BLANK): (A.SKIP, S.MOVES),
    (S.MOVES, K.TAG): (A.SPLIT, S.TAGS),
    (S.MOVES, K.MOVES): (A.ADD_MOVES, S.MOVES),
    (S.MOVES, K.EOF): (A.FINISH, S.ENDED),

    (S.ENDED, K.BLANK): (A.DONE, S.ENDED),
    (S.ENDED, K.TAG): (A.DONE, S.ENDED),
    (S.ENDED, K.MOVES): (A.DONE, S.ENDED),
    (S.ENDED, K.EOF): (A.DONE, S.ENDED),
}


def transition(state: ReaderState, kind: LineKind) -> Tuple[Action, ReaderState]:
    return TRANSITIONS[(state, kind)]


def classify_line(line: str) -> Tuple[LineKind, Optional[Tuple[str, str]]]:
    """Classify a line (already stripped); tag lines also return their (key, value)."""
    if not line:
        return LineKind.BLANK, None
    m = TAG_RE.fullmatch(line)
    if m is not None:
        return LineKind.TAG, (m.group(1), m.group(2))
    return LineKind.MOVES, None


class PgnReader:
    """Pull-based reader over a text stream of PGN games.

    read_next() returns exactly one of Game, BadRecord, Ended or Error. Error and Ended
    are terminal: once either has been returned, every further call returns Ended.
    Not safe to share between threads.
    """

    def __init__(self, stream: TextIO, prefix: str, owns_stream: bool = False) -> None:
        self.prefix = prefix
        self.state = ReaderState.START
        self.line_number = 0
        self.count = 0

        self._stream = stream
        self._owns_stream = owns_stream
        self._pending: Optional[Record] = None

    @classmethod
    def open(cls, path: Union[str, Path]) -> "PgnReader":
        return cls(open_pgn_text(path), archive_prefix(path), owns_stream=True)

    def close(self) -> None:
        if self._owns_stream:
            self._stream.close()

    def __enter__(self) -> "PgnReader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __iter__(self) -> Iterator[Outcome]:
        while True:
            outcome = self.read_next()
            if outcome is ENDED:
                return
            yield outcome

    def _new_record(self) -> Record:
        self.count += 1
        return Record.new(self.prefix, self.count)

    def read_next(self) -> Outcome:
        if self.state == ReaderState.ENDED:
            return ENDED

        if self._pending is not None:
            pgn = self._pending
            self._pending = None
        else:
            pgn = self._new_record()

        while True:
            self.line_number += 1
            try:
                raw = self._stream.readline()
            except READ_ERRORS as e:
                self.state = ReaderState.ENDED
                return Error(f"Line {self.line_number}: {e}")

            if raw == "":
                kind, tag = LineKind.EOF, None
                line = ""
            else:
                line = raw.strip()
                kind, tag = classify_line(line)

            action, self.state = transition(self.state, kind)

            if action is Action.SKIP:
                continue

            if action is Action.ADD_TAG:
                key, value = tag
                pgn.add_tag(key, value, line)
                continue

            if action in (Action.START_MOVES, Action.ADD_MOVES):
                pgn.add_moves(line)
                continue

            if action is Action.SPLIT:
                key, value = tag
                nxt = self._new_record()
                nxt.add_tag(key, value, line)
                self._pending = nxt
                return self._postprocess(pgn)

            if action is Action.FINISH:
                return self._postprocess(pgn)

            if action is Action.TRUNCATED:
                return Error(f"Line {self.line_number}: Ended unexpectedly.")

            if action is Action.UNEXPECTED:
                shown = raw.rstrip("\n")
                return Error(f"Line {self.line_number}: Unexpected line: {shown}")

            return ENDED

    def _postprocess(self, pgn: Record) -> Outcome:
        reason = validate_record(pgn)
        if reason is not None:
            return BadRecord(
                reason=reason,
                tags_text=pgn.tags_text,
                moves_text=pgn.moves_text,
                line_number=self.line_number,
            )
        return Game(pgn)
