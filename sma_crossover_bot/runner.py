#!/usr/bin/env python3
"""Cycle runner that wires config, store, oracle, ledger and event sinks."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, List, Optional

from .bot import SmaCrossoverBot
from .config import BotConfig
from .enhanced_logging import get_trade_logger, log_bot_status, setup_enhanced_logging
from .errors import BotError
from .events import CompositeEventSink, EventSink, LoggingEventSink
from .integrations import DatabaseEventSink, WebhookEventSink
from .ledger import InMemoryLedger, TransferLedger
from .oracle import OracleRegistry, PriceOracle
from .state import TradeSignal
from .store import JsonFileStateStore, StateStore


class CrossoverRunner:
    """Drives sample -> detect -> execute cycles against one bot record."""

    def __init__(
        self,
        config: Optional[BotConfig] = None,
        *,
        store: Optional[StateStore] = None,
        oracle: Optional[PriceOracle] = None,
        ledger: Optional[TransferLedger] = None,
        sinks: Optional[List[EventSink]] = None,
        logger: Optional[logging.Logger] = None,
        sleep=time.sleep,
    ) -> None:
        self._lock = threading.RLock()
        self.config = config or BotConfig.load()
        self._sleep = sleep
        self._cycle = 0
        self._stop_requested = False

        if logger is None:
            logger = setup_enhanced_logging(
                log_level=self.config.log_level,
                log_file=self.config.log_file,
                detail_logging=True,
                logger_name="sma-bot",
            )
        self.logger = logger
        self.trade_logger = get_trade_logger()

        if sinks is None:
            sinks = self._default_sinks()
        self.events = CompositeEventSink(sinks, logger=self.logger)

        self.bot = SmaCrossoverBot(
            store=store or JsonFileStateStore(self.config.state_dir),
            oracle=oracle or OracleRegistry.create(self.config.oracle, **self.config.oracle_params),
            ledger=ledger or InMemoryLedger.from_config(self.config.ledger_balances),
            events=self.events,
            logger=self.logger,
        )
        self.logger.info(
            "Runner ready with bot=%s oracle=%s source=%s",
            self.config.bot_instance_id,
            self.config.oracle,
            self.config.oracle_source,
        )

    def _default_sinks(self) -> List[EventSink]:
        sinks: List[EventSink] = [LoggingEventSink(self.trade_logger)]
        webhook = WebhookEventSink(
            base_url=self.config.base_url,
            bot_instance_id=self.config.bot_instance_id,
            bot_secret=self.config.bot_secret,
            logger=self.logger,
        )
        if webhook.enabled:
            sinks.append(webhook)
        if self.config.database_url:
            sinks.append(
                DatabaseEventSink(
                    database_url=self.config.database_url,
                    bot_instance_id=self.config.bot_instance_id,
                    logger=self.logger,
                )
            )
        return sinks

    @property
    def cycle(self) -> int:
        return self._cycle

    def ensure_initialized(self) -> None:
        bot_id = self.config.bot_instance_id
        if self.bot.store.exists(bot_id):
            self.logger.info("Resuming existing state for %s", bot_id)
            return
        self.bot.initialize(bot_id, self.config.short_window, self.config.long_window, self.config.administrator)

    def run_cycle(self) -> Dict[str, Any]:
        """Run one sample/detect/execute pass; a failing step ends the pass."""
        bot_id = self.config.bot_instance_id
        result: Dict[str, Any] = {"cycle": self._cycle, "signal": None, "executed_at": None, "error": None}

        with self._lock:
            try:
                self.bot.calculate_averages(bot_id, self.config.oracle_source)
                signal: TradeSignal = self.bot.detect_crossover(bot_id)
                result["signal"] = signal.value
                if self.config.execute_trades:
                    result["executed_at"] = self.bot.execute_trade(
                        bot_id,
                        signal,
                        self.config.administrator,
                        self.config.user_balance,
                        self.config.bot_balance,
                    )
            except BotError as exc:
                self.logger.warning("Cycle #%s stopped: %s", self._cycle, exc)
                result["error"] = exc.code

            state = self.bot.get_state(bot_id)
            log_bot_status(
                self.logger,
                status="RUNNING",
                bot_id=bot_id,
                cycle=self._cycle,
                history_length=len(state.price_history),
                long_window_size=state.long_window_size,
                last_price=state.last_price,
                last_signal=state.last_signal.value if state.last_signal else None,
            )
            self._cycle += 1
        return result

    def stop(self) -> None:
        self._stop_requested = True

    def run(self) -> List[Dict[str, Any]]:
        """Run until max_cycles is reached (or indefinitely)."""
        results: List[Dict[str, Any]] = []
        self.ensure_initialized()
        try:
            while not self._stop_requested:
                results.append(self.run_cycle())

                if self.config.max_cycles is not None and self._cycle >= self.config.max_cycles:
                    self.logger.info("Reached max_cycles=%s", self.config.max_cycles)
                    break

                if self.config.sleep_seconds > 0:
                    self._sleep(self.config.sleep_seconds)
        except KeyboardInterrupt:
            self.logger.info("Interrupted by user")
        finally:
            self.logger.info("Bot loop stopped after %s cycle(s)", self._cycle)
            self.events.close()
        return results
