"""SMA crossover trading bot: rolling averages, crossover signal, gated transfers."""

from .bot import TRADE_QUANTITY, SmaCrossoverBot
from .errors import (
    AccountNotFound,
    BotError,
    InsufficientFunds,
    InsufficientPriceData,
    InvalidPeriod,
    OracleDataError,
    PriceOverflow,
    StateAlreadyExists,
    StateNotFound,
    TransferFailure,
    Unauthorized,
)
from .state import BotState, TradeSignal

__all__ = [
    "AccountNotFound",
    "BotError",
    "BotState",
    "InsufficientFunds",
    "InsufficientPriceData",
    "InvalidPeriod",
    "OracleDataError",
    "PriceOverflow",
    "SmaCrossoverBot",
    "StateAlreadyExists",
    "StateNotFound",
    "TRADE_QUANTITY",
    "TradeSignal",
    "TransferFailure",
    "Unauthorized",
]
