#!/usr/bin/env python3
"""Transfer ledger abstractions used by the trade executor."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from .errors import AccountNotFound, InsufficientFunds, TransferFailure


class TransferLedger(Protocol):
    """Protocol implemented by any ledger able to move value between balances."""

    def transfer(self, from_balance: str, to_balance: str, quantity: int, authority: str) -> None:
        """Atomically move ``quantity`` or raise ``TransferFailure``."""


@dataclass
class Balance:
    """Custodial balance owned by a single identity."""

    owner: str
    amount: int = 0


@dataclass
class TransferRecord:
    from_balance: str
    to_balance: str
    quantity: int
    authority: str


class InMemoryLedger:
    """Token-style ledger: only the owner of the source balance may move funds out of it."""

    def __init__(self, balances: Optional[Dict[str, Balance]] = None) -> None:
        self._lock = threading.RLock()
        self.balances: Dict[str, Balance] = dict(balances or {})
        self.transfers: List[TransferRecord] = []

    @classmethod
    def from_config(cls, balances: Dict[str, Any]) -> "InMemoryLedger":
        """Build from ``{"name": {"owner": "...", "amount": 10}}`` mappings."""
        ledger = cls()
        for name, entry in balances.items():
            if not isinstance(entry, dict) or "owner" not in entry:
                raise ValueError(f"Balance '{name}' needs an object with an 'owner' key")
            ledger.open(name, owner=str(entry["owner"]), amount=int(entry.get("amount", 0)))
        return ledger

    def open(self, name: str, *, owner: str, amount: int = 0) -> Balance:
        if amount < 0:
            raise ValueError("Opening amount cannot be negative")
        with self._lock:
            balance = Balance(owner=owner, amount=amount)
            self.balances[name] = balance
            return balance

    def balance_of(self, name: str) -> int:
        with self._lock:
            return self._get(name).amount

    def _get(self, name: str) -> Balance:
        try:
            return self.balances[name]
        except KeyError as exc:
            raise AccountNotFound(f"Balance '{name}' does not exist") from exc

    def transfer(self, from_balance: str, to_balance: str, quantity: int, authority: str) -> None:
        if quantity <= 0:
            raise TransferFailure(f"Transfer quantity must be positive, got {quantity}")
        with self._lock:
            source = self._get(from_balance)
            target = self._get(to_balance)
            if source.owner != authority:
                raise TransferFailure(f"'{authority}' is not the owner of balance '{from_balance}'")
            if source.amount < quantity:
                raise InsufficientFunds(
                    f"Balance '{from_balance}' holds {source.amount}, cannot move {quantity}"
                )
            source.amount -= quantity
            target.amount += quantity
            self.transfers.append(TransferRecord(from_balance, to_balance, quantity, authority))
