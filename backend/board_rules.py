# board_rules.py — Board defaults, column kinds and task ranking
from typing import List, Optional, Sequence

from models import ColumnKind

# Columns created with every new board, in rank order
DEFAULT_COLUMNS = [
    {"title": "TO DO", "kind": ColumnKind.TODO},
    {"title": "IN PROGRESS", "kind": ColumnKind.IN_PROGRESS},
    {"title": "COMPLETE", "kind": ColumnKind.DONE},
]

# Gap between neighbouring task positions after a rebalance
POSITION_STEP = 1024.0


def suggest_column_kind(title: str) -> ColumnKind:
    """Guess a column kind from its title. Only used when the caller gives none."""
    t = "".join((title or "").lower().split())
    if "todo" in t:
        return ColumnKind.TODO
    if "progress" in t:
        return ColumnKind.IN_PROGRESS
    if "done" in t or "complete" in t:
        return ColumnKind.DONE
    return ColumnKind.OTHER


def position_for_index(positions: Sequence[float], index: int) -> Optional[float]:
    """Rank for a task dropped at ``index`` among ``positions`` (ascending).

    Returns None when the two neighbours are too close to split, in which
    case the column has to be rebalanced first.
    """
    if not positions:
        return POSITION_STEP
    if index >= len(positions):
        return positions[-1] + POSITION_STEP
    if index <= 0:
        return positions[0] - POSITION_STEP
    lo, hi = positions[index - 1], positions[index]
    mid = (lo + hi) / 2
    if not lo < mid < hi:
        return None
    return mid


def rebalanced_positions(count: int) -> List[float]:
    return [(i + 1) * POSITION_STEP for i in range(count)]
