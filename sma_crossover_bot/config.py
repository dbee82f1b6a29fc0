#!/usr/bin/env python3
"""Small configuration helper for the crossover bot runner."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


def _to_float(value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Cannot convert '{value}' to float") from exc


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Cannot convert '{value}' to int") from exc


def _to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Cannot convert '{value}' to bool")


@dataclass
class BotConfig:
    """Holds the configuration required to wire and run one bot instance."""

    bot_instance_id: str = "sma-bot"
    short_window: int = 5
    long_window: int = 20
    administrator: str = "admin"
    oracle: str = "file"
    oracle_source: str = "price.bin"
    oracle_params: Dict[str, Any] = field(default_factory=dict)
    state_dir: str = "state"
    user_balance: str = "user"
    bot_balance: str = "bot"
    ledger_balances: Dict[str, Any] = field(default_factory=dict)
    sleep_seconds: float = 2.0
    max_cycles: Optional[int] = None
    execute_trades: bool = True
    base_url: Optional[str] = None
    bot_secret: Optional[str] = None
    database_url: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def load(cls, path: Optional[str] = None) -> "BotConfig":
        path = path or os.getenv("BOT_CONFIG", "bot.config.json")
        data: Dict[str, Any] = {}

        if os.path.exists(path):
            with open(path, "r", encoding="utf-8") as handle:
                file_data = json.load(handle)
                if not isinstance(file_data, dict):
                    raise ValueError("Configuration file must contain a JSON object")
                data.update(file_data)

        data.update(cls._env_overrides())
        config = cls(**data)
        config.update({})
        return config

    @staticmethod
    def _env_overrides() -> Dict[str, Any]:
        mapping = {
            "BOT_INSTANCE_ID": ("bot_instance_id", str),
            "SHORT_PERIOD": ("short_window", _to_int),
            "LONG_PERIOD": ("long_window", _to_int),
            "BOT_ADMIN": ("administrator", str),
            "BOT_ORACLE": ("oracle", str),
            "BOT_ORACLE_SOURCE": ("oracle_source", str),
            "BOT_STATE_DIR": ("state_dir", str),
            "BOT_USER_BALANCE": ("user_balance", str),
            "BOT_BOT_BALANCE": ("bot_balance", str),
            "BOT_SLEEP": ("sleep_seconds", _to_float),
            "BOT_MAX_CYCLES": ("max_cycles", _to_int),
            "BOT_EXECUTE_TRADES": ("execute_trades", _to_bool),
            "BASE_URL": ("base_url", str),
            "BOT_SECRET": ("bot_secret", str),
            "POSTGRES_URL": ("database_url", str),
            "DATABASE_URL": ("database_url", str),
            "BOT_LOG_LEVEL": ("log_level", str),
            "BOT_LOG_FILE": ("log_file", str),
        }

        overrides: Dict[str, Any] = {}
        for env_name, (config_key, caster) in mapping.items():
            env_value = os.getenv(env_name)
            if env_value is not None:
                overrides[config_key] = caster(env_value)

        for env_name, config_key in (
            ("BOT_ORACLE_PARAMS", "oracle_params"),
            ("BOT_LEDGER_BALANCES", "ledger_balances"),
        ):
            env_value = os.getenv(env_name)
            if env_value:
                parsed = json.loads(env_value)
                if not isinstance(parsed, dict):
                    raise ValueError(f"{env_name} must contain a JSON object")
                overrides[config_key] = parsed

        return overrides

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        if payload.get("bot_secret"):
            payload["bot_secret"] = "***"
        return payload

    def update(self, updates: Dict[str, Any]) -> None:
        for key, value in updates.items():
            if key == "oracle_params" and isinstance(value, dict):
                self.oracle_params.update(value)
            elif key == "ledger_balances" and isinstance(value, dict):
                self.ledger_balances.update(value)
            elif hasattr(self, key):
                setattr(self, key, value)

        if isinstance(self.max_cycles, int) and self.max_cycles <= 0:
            self.max_cycles = None
