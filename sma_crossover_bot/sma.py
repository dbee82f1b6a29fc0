#!/usr/bin/env python3
"""Integer rolling-average helpers and the crossover decision rule."""

from __future__ import annotations

from typing import List, Sequence, Tuple

from .errors import InvalidPeriod, PriceOverflow
from .state import U64_MAX, TradeSignal


def push_price(history: List[int], price: int, capacity: int) -> List[int]:
    """Append ``price`` and evict the oldest entries beyond ``capacity`` (in place)."""
    history.append(price)
    excess = len(history) - capacity
    if excess > 0:
        del history[:excess]
    return history


def _sma(values: Sequence[int], period: int) -> int:
    # Windows wider than the history divide the available samples by the full period.
    if period <= 0:
        raise InvalidPeriod(f"Window size must be positive, got {period}")
    start = max(0, len(values) - period)
    total = 0
    for value in values[start:]:
        total += value
        if total > U64_MAX:
            raise PriceOverflow(f"Sum of the last {period} prices exceeds {U64_MAX}")
    return total // period


def short_and_long_averages(history: Sequence[int], short_period: int, long_period: int) -> Tuple[int, int]:
    return _sma(history, short_period), _sma(history, long_period)


def crossover_signal(short_average: int, long_average: int) -> TradeSignal:
    """BUY only while the short average is strictly above the long one."""
    if short_average > long_average:
        return TradeSignal.BUY
    return TradeSignal.SELL
