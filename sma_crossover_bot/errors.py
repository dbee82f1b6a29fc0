#!/usr/bin/env python3
"""Error taxonomy shared by every bot operation."""

from __future__ import annotations


class BotError(Exception):
    """Base error carrying a stable machine-readable code."""

    code = "BOT_ERROR"
    default_message = "Bot operation failed."

    def __init__(self, message: str | None = None, *, code: str | None = None):
        self.message = message or self.default_message
        if code:
            self.code = code
        super().__init__(f"{self.code}: {self.message}")


class InsufficientPriceData(BotError):
    code = "INSUFFICIENT_PRICE_DATA"
    default_message = "Not enough price data to calculate SMA."


class Unauthorized(BotError):
    code = "UNAUTHORIZED"
    default_message = "Unauthorized action."


class InvalidPeriod(BotError):
    code = "INVALID_PERIOD"
    default_message = "Invalid period values."


class OracleDataError(BotError):
    code = "ORACLE_DATA_ERROR"
    default_message = "Failed to fetch price from oracle."


class PriceOverflow(BotError):
    code = "PRICE_OVERFLOW"
    default_message = "Price arithmetic exceeded the unsigned 64-bit range."


class TransferFailure(BotError):
    code = "TRANSFER_FAILURE"
    default_message = "Transfer was rejected by the ledger."


class InsufficientFunds(TransferFailure):
    code = "INSUFFICIENT_FUNDS"
    default_message = "Insufficient funds to execute the trade."


class AccountNotFound(TransferFailure):
    code = "ACCOUNT_NOT_FOUND"
    default_message = "Balance account does not exist."


class StateNotFound(BotError):
    code = "STATE_NOT_FOUND"
    default_message = "Bot state record does not exist."


class StateAlreadyExists(BotError):
    code = "STATE_ALREADY_EXISTS"
    default_message = "Bot state record already exists."
