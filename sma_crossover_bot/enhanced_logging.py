#!/usr/bin/env python3
"""Enhanced logging system with UTF-8 support and detailed formatting."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional


class Utf8StreamHandler(logging.StreamHandler):
    """StreamHandler that always writes UTF-8, whatever the console encoding."""

    def emit(self, record):
        try:
            msg = self.format(record)
            stream = self.stream

            # Write encoded bytes when the stream exposes a binary buffer
            if hasattr(stream, 'buffer') and hasattr(stream.buffer, 'write'):
                stream.buffer.write((msg + self.terminator).encode('utf-8', 'replace'))
                stream.buffer.flush()
            else:
                try:
                    stream.write(msg + self.terminator)
                except UnicodeEncodeError:
                    safe_msg = msg.encode('ascii', 'replace').decode('ascii')
                    stream.write(safe_msg + self.terminator)
                stream.flush()
        except Exception:
            self.handleError(record)


def setup_enhanced_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    detail_logging: bool = False,
    logger_name: Optional[str] = None,
    stream=None,
) -> logging.Logger:
    """
    Setup enhanced logging with UTF-8 support and configurable detail level.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional rotating log file path; console only when empty
        detail_logging: If True, includes filename, function, and line number
        logger_name: Optional specific logger name, defaults to root logger
        stream: Console stream, defaults to stdout

    Returns:
        Configured logger instance
    """
    if detail_logging:
        log_format = "%(asctime)s - %(levelname)s - [%(filename)s - %(funcName)s:%(lineno)d] - %(message)s"
    else:
        log_format = "%(asctime)s - %(levelname)s - %(message)s"

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    handlers = [Utf8StreamHandler(stream or sys.stdout)]

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

        # Max 10MB per file, keep 5 backup files
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,
            backupCount=5,
            encoding='utf-8'
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        handlers=handlers,
        force=True
    )

    return logging.getLogger(logger_name) if logger_name else logging.getLogger()


def get_trade_logger(logger_name: str = "sma-bot.trade") -> logging.Logger:
    """Get a specialized logger for trade-specific messages."""
    return logging.getLogger(logger_name)


def log_averages(
    logger: logging.Logger,
    bot_id: str,
    short_average: int,
    long_average: int,
    price: int
) -> None:
    """Log a freshly computed pair of rolling averages."""
    spread = short_average - long_average
    logger.info(
        f"SMA [{bot_id}]: price={price} | short={short_average} | long={long_average} | spread={spread:+d}"
    )


def log_signal(
    logger: logging.Logger,
    bot_id: str,
    signal_action: str,
    short_average: int,
    long_average: int,
    market_price: int,
    detailed: bool = False
) -> None:
    """
    Log crossover signal detection.

    Args:
        logger: Logger instance to use
        bot_id: Bot instance the signal belongs to
        signal_action: Signal action (buy/sell)
        short_average: Short window average at detection time
        long_average: Long window average at detection time
        market_price: Last sampled price
        detailed: If True, upper-cases the action and adds the comparison used
    """
    action_display = signal_action.upper() if detailed else signal_action
    relation = ">" if short_average > long_average else "<="
    tech_str = f" | Tech: short={short_average}, long={long_average}"
    if detailed:
        tech_str += f" ({short_average} {relation} {long_average})"

    logger.info(f"SIGNAL [{bot_id}]: {action_display} @ {market_price}{tech_str}")


def log_trade_execution(
    logger: logging.Logger,
    bot_id: str,
    action: str,
    executed_at: int,
    quantity: int = 1
) -> None:
    """Log a completed transfer in the signal's direction."""
    direction = "user -> bot" if action.lower() == "buy" else "bot -> user"
    logger.info(
        f"TRADE [{bot_id}]: {action.upper()} {quantity} unit(s) | {direction} | executed_at={executed_at}"
    )


def log_periods_update(
    logger: logging.Logger,
    bot_id: str,
    administrator: str,
    short_window_size: int,
    long_window_size: int
) -> None:
    logger.info(
        f"PERIODS [{bot_id}]: short={short_window_size} long={long_window_size} | by {administrator}"
    )


def log_bot_status(
    logger: logging.Logger,
    status: str,
    bot_id: str,
    cycle: int,
    history_length: int,
    long_window_size: int,
    last_price: int,
    last_signal: Optional[str] = None
) -> None:
    """
    Log bot status with a history fill summary.

    Args:
        logger: Logger instance to use
        status: Bot status (RUNNING/STOPPED)
        bot_id: Bot instance identifier
        cycle: Current cycle number
        history_length: Samples currently held
        long_window_size: Samples required before averages are computed
        last_price: Most recently sampled price
        last_signal: Most recent signal, if any
    """
    signal_str = last_signal.upper() if last_signal else "NONE"
    logger.info(
        f"STATUS: {status} | Cycle #{cycle} | {bot_id} @ {last_price} | "
        f"History: {history_length}/{long_window_size} | Signal: {signal_str}"
    )
