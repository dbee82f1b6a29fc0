#!/usr/bin/env python3
"""Bot state record and trade signal definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

U64_MAX = 2**64 - 1


class TradeSignal(str, Enum):
    """Trade direction produced by the crossover detector."""

    BUY = "buy"
    SELL = "sell"

    @classmethod
    def parse(cls, value: Any) -> "TradeSignal":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown trade signal '{value}'. Expected 'buy' or 'sell'") from exc


def periods_are_valid(short_window_size: int, long_window_size: int) -> bool:
    return 0 < short_window_size < long_window_size


@dataclass
class BotState:
    """State of one bot: window sizes, price history, averages and administrator."""

    administrator: str
    short_window_size: int
    long_window_size: int
    price_history: List[int] = field(default_factory=list)
    short_average: int = 0
    long_average: int = 0
    last_price: int = 0
    last_signal: Optional[TradeSignal] = None

    @property
    def is_warm(self) -> bool:
        """True once the history holds enough samples for the long window."""
        return len(self.price_history) >= self.long_window_size

    def to_dict(self) -> Dict[str, Any]:
        return {
            "administrator": self.administrator,
            "short_window_size": self.short_window_size,
            "long_window_size": self.long_window_size,
            "price_history": list(self.price_history),
            "short_average": self.short_average,
            "long_average": self.long_average,
            "last_price": self.last_price,
            "last_signal": self.last_signal.value if self.last_signal else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BotState":
        signal = data.get("last_signal")
        return cls(
            administrator=str(data["administrator"]),
            short_window_size=int(data["short_window_size"]),
            long_window_size=int(data["long_window_size"]),
            price_history=[int(price) for price in data.get("price_history", [])],
            short_average=int(data.get("short_average", 0)),
            long_average=int(data.get("long_average", 0)),
            last_price=int(data.get("last_price", 0)),
            last_signal=TradeSignal.parse(signal) if signal is not None else None,
        )
