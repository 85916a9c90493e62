# pgn_validate.py
# Business-rule checks on a finished record, and the move-sequence fingerprint.

from __future__ import annotations

import hashlib
from typing import Iterable, Optional

from move_extractor import RESULTS, extract_moves
from pgn_record import Record


# Key for the fingerprint hash. Changing it changes every stored fingerprint.
FINGERPRINT_SEED = b"pgn-ingest/moves/v1"


def moves_fingerprint(moves: Iterable[str]) -> int:
    """Order-sensitive 64-bit digest of a move sequence, for duplicate detection only."""
    h = hashlib.blake2b(digest_size=8, key=FINGERPRINT_SEED, usedforsecurity=False)
    for m in moves:
        h.update(m.encode("utf-8"))
    return int.from_bytes(h.digest(), "big")


def validate_record(record: Record) -> Optional[str]:
    """Check a raw record; on success fill in moves and fingerprint and return None.

    Otherwise return the rejection reason and leave the record untouched.
    Checks run in a fixed order and the first failure wins.
    """
    result_tag = record.tags.get("Result")
    if result_tag is None:
        return "missing result tag"

    if result_tag not in RESULTS:
        return f"bad result tag ({result_tag})"

    extracted = extract_moves(record.moves_text)
    if extracted is None:
        return "cannot extract move list"

    moves, last_index, result = extracted
    if result != result_tag:
        return f"result tag ({result_tag}) != result sentinel ({result})"

    # Even count: game ended on Black's move; odd: on White's.
    if len(moves) not in (2 * last_index, 2 * last_index - 1):
        return (
            f"last move index == {last_index}, "
            f"but # of moves (white + black) == {len(moves)}"
        )

    record.moves = moves
    record.fingerprint = moves_fingerprint(moves)
    return None
