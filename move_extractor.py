# move_extractor.py
# Two-pass movetext extraction: anchor the whole block as a finished game, then collect SAN tokens.

from __future__ import annotations

import re
from typing import List, Optional, Set, Tuple


# ----------------------------
# Grammar
# ----------------------------

RE_SAN = r"(?:[PNBRQK]?[a-h]?[1-8]?x?[a-h][1-8](?:=[PNBRQK])?[+#]?)"
RE_CASTLE = r"(?:O-O(?:-O)?[+#]?)"
RE_INDEX = r"(?:\d+\.+)"
RE_SUFFIX = r"(?:[!?][!?]?)"
RE_COMMENT = r"(?:\{[^}]*\})"
RE_RESULT = r"(?:1-0|0-1|1/2-1/2|\*)"

RESULTS = ("1-0", "0-1", "1/2-1/2", "*")


def _move(group: bool) -> str:
    token = f"({RE_SAN}|{RE_CASTLE})" if group else f"(?:{RE_SAN}|{RE_CASTLE})"
    return f"(?:{token}{RE_SUFFIX}?(?:\\s*{RE_COMMENT})?)"


# Token pass: groups are (index number, first move, optional reply).
ITEM_RE = re.compile(
    f"(\\d+)\\.+\\s+{_move(group=True)}(?:\\s+{_move(group=True)})?"
)

_ITEM_PLAIN = f"(?:{RE_INDEX}\\s+{_move(group=False)}(?:\\s+{_move(group=False)})?)"

# Anchor pass: one or more items, then the result sentinel as the very last token.
FULL_RE = re.compile(
    f"{_ITEM_PLAIN}(?:\\s+{_ITEM_PLAIN})*\\s+(?P<result>{RE_RESULT})"
)


def extract_moves(text: str) -> Optional[Tuple[List[str], int, str]]:
    """Return (moves, index_count, result) for a movetext block, or None.

    The block is accepted only if it is, in full, a sequence of numbered move items
    followed by a result sentinel. Moves are then collected item by item in document
    order; index_count is the number of distinct move numbers encountered.
    """
    full = FULL_RE.fullmatch(text.strip())
    if full is None:
        return None
    result = full.group("result")

    moves: List[str] = []
    indexes: Set[int] = set()
    for m in ITEM_RE.finditer(text):
        indexes.add(int(m.group(1)))
        moves.append(m.group(2))
        if m.group(3) is not None:
            moves.append(m.group(3))

    return moves, len(indexes), result
