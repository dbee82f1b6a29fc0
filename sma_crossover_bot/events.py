#!/usr/bin/env python3
"""Typed event records and the in-process event sinks."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Protocol

from .enhanced_logging import log_averages, log_periods_update, log_signal, log_trade_execution
from .state import TradeSignal


@dataclass(frozen=True)
class BotEvent:
    """Base class for every record appended to the event log."""

    name: ClassVar[str] = "event"

    def as_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        for key, value in payload.items():
            if isinstance(value, TradeSignal):
                payload[key] = value.value
        payload["event"] = self.name
        return payload


@dataclass(frozen=True)
class BotInitialized(BotEvent):
    name: ClassVar[str] = "bot_initialized"

    bot_id: str
    administrator: str
    short_window_size: int
    long_window_size: int


@dataclass(frozen=True)
class AveragesComputed(BotEvent):
    name: ClassVar[str] = "averages_computed"

    bot_id: str
    short_average: int
    long_average: int
    price: int


@dataclass(frozen=True)
class SignalDetected(BotEvent):
    name: ClassVar[str] = "signal_detected"

    bot_id: str
    signal: TradeSignal
    short_average: int
    long_average: int
    price: int


@dataclass(frozen=True)
class TradeExecuted(BotEvent):
    name: ClassVar[str] = "trade_executed"

    bot_id: str
    signal: TradeSignal
    executed_at: int


@dataclass(frozen=True)
class PeriodsUpdated(BotEvent):
    name: ClassVar[str] = "periods_updated"

    bot_id: str
    administrator: str
    short_window_size: int
    long_window_size: int


class EventSink(Protocol):
    """Append-only destination for bot events."""

    def emit(self, event: BotEvent) -> None:
        """Record the event. Delivery is best effort."""


class MemoryEventSink:
    """Keeps events in arrival order; handy for inspection and tests."""

    def __init__(self) -> None:
        self.events: List[BotEvent] = []

    def emit(self, event: BotEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type) -> List[BotEvent]:
        return [event for event in self.events if isinstance(event, event_type)]

    def clear(self) -> None:
        self.events.clear()


class LoggingEventSink:
    """Writes each event as a single formatted log line."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("sma-bot.events")

    def emit(self, event: BotEvent) -> None:
        if isinstance(event, AveragesComputed):
            log_averages(self.logger, event.bot_id, event.short_average, event.long_average, event.price)
        elif isinstance(event, SignalDetected):
            log_signal(
                self.logger,
                event.bot_id,
                event.signal.value,
                event.short_average,
                event.long_average,
                event.price,
            )
        elif isinstance(event, TradeExecuted):
            log_trade_execution(self.logger, event.bot_id, event.signal.value, event.executed_at)
        elif isinstance(event, PeriodsUpdated):
            log_periods_update(
                self.logger,
                event.bot_id,
                event.administrator,
                event.short_window_size,
                event.long_window_size,
            )
        elif isinstance(event, BotInitialized):
            self.logger.info(
                "INIT [%s]: admin=%s short=%s long=%s",
                event.bot_id,
                event.administrator,
                event.short_window_size,
                event.long_window_size,
            )
        else:
            self.logger.info("EVENT: %s", event.as_dict())


class CompositeEventSink:
    """Fan out to several sinks; one failing sink never blocks the rest."""

    def __init__(self, sinks: Iterable[EventSink], logger: Optional[logging.Logger] = None) -> None:
        self.sinks = list(sinks)
        self.logger = logger or logging.getLogger("sma-bot.events")

    def emit(self, event: BotEvent) -> None:
        for sink in self.sinks:
            try:
                sink.emit(event)
            except Exception as exc:  # noqa: BLE001 - event log is best effort
                self.logger.warning("Event sink %s failed for %s: %s", type(sink).__name__, event.name, exc)

    def close(self) -> None:
        for sink in self.sinks:
            close = getattr(sink, "close", None)
            if callable(close):
                close()
