"""Generic group-by primitives shared by every report builder."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Generic, TypeVar

R = TypeVar("R")
K = TypeVar("K", bound=Hashable)

ZERO = Decimal("0")
Q1 = Decimal("0.1")
HUNDRED = Decimal("100")
NOT_AVAILABLE = "N/A"


@dataclass(frozen=True, slots=True)
class KeyTotal(Generic[K]):
    key: K
    total: Decimal


@dataclass(frozen=True, slots=True)
class KeyCount(Generic[K]):
    key: K
    count: int


def quantize_tenth(value: Decimal) -> Decimal:
    """Quantize to one decimal place, keeping a ``Decimal``."""

    # ROUND_HALF_UP rounds half away from zero
    return value.quantize(Q1, rounding=ROUND_HALF_UP)


def round_hours(value: Decimal) -> float:
    """Round an hour sum to one decimal place for emission."""

    return float(quantize_tenth(value))


def safe_ratio(numerator: Decimal, denominator: Decimal) -> float:
    """``numerator / denominator`` rounded to one decimal, 0 when denominator is 0."""

    if denominator == ZERO:
        return 0.0
    return round_hours(numerator / denominator)


def percentage(part: Decimal, total: Decimal) -> float:
    """``round(part / total * 1000) / 10``; 0 when ``total`` is zero."""

    if total == ZERO:
        return 0.0
    return float(quantize_tenth(part * HUNDRED / total))


def sum_by_key(
    records: Iterable[R],
    key_fn: Callable[[R], K],
    value_fn: Callable[[R], Decimal],
) -> list[KeyTotal[K]]:
    """Sum ``value_fn`` per key, largest first, ties kept in first-seen order."""

    totals: dict[K, Decimal] = {}
    for record in records:
        key = key_fn(record)
        totals[key] = totals.get(key, ZERO) + value_fn(record)
    rows = [KeyTotal(key=key, total=total) for key, total in totals.items()]
    rows.sort(key=lambda row: row.total, reverse=True)
    return rows


def count_by_key(records: Iterable[R], key_fn: Callable[[R], K]) -> list[KeyCount[K]]:
    counts: dict[K, int] = {}
    for record in records:
        key = key_fn(record)
        counts[key] = counts.get(key, 0) + 1
    rows = [KeyCount(key=key, count=count) for key, count in counts.items()]
    rows.sort(key=lambda row: row.count, reverse=True)
    return rows


def with_percentages(rows: list[KeyTotal[K]]) -> list[tuple[KeyTotal[K], float]]:
    """Attach each row's share of the grand total.

    A zero grand total yields an empty list rather than a division by zero.
    """

    total = sum((row.total for row in rows), ZERO)
    if total == ZERO:
        return []
    return [(row, percentage(row.total, total)) for row in rows]


def top_key(rows: list[KeyTotal[K]] | list[KeyCount[K]], default: str = NOT_AVAILABLE) -> K | str:
    if not rows:
        return default
    return rows[0].key


def total_hours(records: Iterable[R], value_fn: Callable[[R], Decimal]) -> Decimal:
    return sum((value_fn(record) for record in records), ZERO)
