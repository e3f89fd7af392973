"""
Position bookkeeping shared by boards, lists, tasks and subtasks.
Every scope keeps its positions contiguous from 0.
"""
from __future__ import annotations

from collections.abc import Hashable, Sequence
from typing import Any, TypeVar

from app.core.exceptions import BadRequestException
from app.crud.base import resequence

T = TypeVar("T")


def apply_order(items: Sequence[T], ids: Sequence[Hashable], what: str) -> list[T]:
    """
    Reorder `items` to follow `ids` and renumber them.
    `ids` must name every item of the scope exactly once.
    """
    by_id: dict[Hashable, Any] = {item.id: item for item in items}  # type: ignore[attr-defined]
    if len(ids) != len(by_id) or set(ids) != set(by_id):
        raise BadRequestException(
            f"The {what} ids must list every {what} in scope exactly once",
            error_code="INVALID_ORDER",
        )
    ordered = [by_id[item_id] for item_id in ids]
    resequence(ordered)
    return ordered


def insert_at(items: list[T], item: T, position: int | None) -> int:
    """Insert at a clamped index (default: end), renumber, return the index used."""
    index = len(items) if position is None else max(0, min(position, len(items)))
    items.insert(index, item)
    resequence(items)
    return index
