#!/usr/bin/env python3
"""Crossover bot operations: initialize, sample, detect, execute, update periods.

Every operation runs inside a single store transaction, so it either commits
all of its writes or none of them. Events are emitted only after the commit.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from .errors import InsufficientPriceData, InvalidPeriod, OracleDataError, Unauthorized
from .events import (
    AveragesComputed,
    BotEvent,
    BotInitialized,
    EventSink,
    MemoryEventSink,
    PeriodsUpdated,
    SignalDetected,
    TradeExecuted,
)
from .ledger import TransferLedger
from .oracle import PriceOracle
from .sma import crossover_signal, push_price, short_and_long_averages
from .state import U64_MAX, BotState, TradeSignal, periods_are_valid
from .store import StateStore

TRADE_QUANTITY = 1


class SmaCrossoverBot:
    """Operations over BotState records held in an external store."""

    def __init__(
        self,
        *,
        store: StateStore,
        oracle: Optional[PriceOracle] = None,
        ledger: Optional[TransferLedger] = None,
        events: Optional[EventSink] = None,
        clock: Callable[[], float] = time.time,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.store = store
        self.oracle = oracle
        self.ledger = ledger
        self.events = events if events is not None else MemoryEventSink()
        self.clock = clock
        self.logger = logger or logging.getLogger("sma-bot")

    def _emit(self, event: BotEvent) -> None:
        try:
            self.events.emit(event)
        except Exception as exc:  # noqa: BLE001 - event log is best effort
            self.logger.warning("Event sink %s failed for %s: %s", type(self.events).__name__, event.name, exc)

    def _require_admin(self, state: BotState, caller: str) -> None:
        if caller != state.administrator:
            raise Unauthorized(f"'{caller}' is not the administrator of this bot")

    def initialize(self, bot_id: str, short_window_size: int, long_window_size: int, caller: str) -> BotState:
        """Create the record; the window relationship is not checked here."""
        for label, size in (("short", short_window_size), ("long", long_window_size)):
            if not 0 <= size <= U64_MAX:
                raise ValueError(f"{label} window size {size} is outside 0..{U64_MAX}")
        state = BotState(
            administrator=caller,
            short_window_size=short_window_size,
            long_window_size=long_window_size,
        )
        self.store.create(bot_id, state)
        self.logger.info(
            "Initialized bot %s (short=%s, long=%s, admin=%s)",
            bot_id,
            short_window_size,
            long_window_size,
            caller,
        )
        self._emit(BotInitialized(bot_id, caller, short_window_size, long_window_size))
        return state

    def calculate_averages(self, bot_id: str, source: str) -> BotState:
        """Sample one price and recompute both averages.

        Refuses to run until the history already holds ``long_window_size``
        samples. Nothing in this class fills the history any other way.
        """
        if self.oracle is None:
            raise RuntimeError("No price oracle configured")

        with self.store.transaction(bot_id) as state:
            if not state.is_warm:
                raise InsufficientPriceData(
                    f"History holds {len(state.price_history)} of {state.long_window_size} required prices"
                )

            price = self.oracle.read_price(source)
            if not 0 <= price <= U64_MAX:
                raise OracleDataError(f"Oracle returned {price}, outside 0..{U64_MAX}")

            push_price(state.price_history, price, state.long_window_size)
            state.short_average, state.long_average = short_and_long_averages(
                state.price_history, state.short_window_size, state.long_window_size
            )
            state.last_price = price

        self.logger.debug("Sampled price %s for %s", price, bot_id)
        self._emit(AveragesComputed(bot_id, state.short_average, state.long_average, price))
        return state

    def detect_crossover(self, bot_id: str) -> TradeSignal:
        with self.store.transaction(bot_id) as state:
            signal = crossover_signal(state.short_average, state.long_average)
            state.last_signal = signal

        self._emit(SignalDetected(bot_id, signal, state.short_average, state.long_average, state.last_price))
        return signal

    def execute_trade(
        self,
        bot_id: str,
        signal: TradeSignal,
        caller: str,
        user_balance: str,
        bot_balance: str,
    ) -> int:
        """Move one unit in the direction of ``signal``; returns the execution timestamp.

        The signal is taken as given; it is not re-derived from the averages,
        and the stored ``last_signal`` is left untouched.
        """
        if self.ledger is None:
            raise RuntimeError("No transfer ledger configured")
        signal = TradeSignal.parse(signal)

        # Read-only on the record: nothing is committed, so the transfer is the last fallible step.
        state = self.store.load(bot_id)
        self._require_admin(state, caller)

        if signal is TradeSignal.BUY:
            self.ledger.transfer(user_balance, bot_balance, TRADE_QUANTITY, caller)
        else:
            self.ledger.transfer(bot_balance, user_balance, TRADE_QUANTITY, caller)
        executed_at = int(self.clock())

        self._emit(TradeExecuted(bot_id, signal, executed_at))
        return executed_at

    def update_periods(self, bot_id: str, short_window_size: int, long_window_size: int, caller: str) -> BotState:
        """Change both window sizes. Existing history is left as is until the next sample."""
        with self.store.transaction(bot_id) as state:
            self._require_admin(state, caller)
            if not periods_are_valid(short_window_size, long_window_size):
                raise InvalidPeriod(
                    f"Need 0 < short < long, got short={short_window_size} long={long_window_size}"
                )
            state.short_window_size = short_window_size
            state.long_window_size = long_window_size

        self._emit(PeriodsUpdated(bot_id, caller, short_window_size, long_window_size))
        return state

    def get_state(self, bot_id: str) -> BotState:
        return self.store.load(bot_id)
