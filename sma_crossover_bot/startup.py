#!/usr/bin/env python3
"""Startup entrypoint for the SMA crossover bot."""

from __future__ import annotations

import sys

from .config import BotConfig
from .runner import CrossoverRunner


def main() -> None:
    # Allow passing a config path; otherwise use ENV.
    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    config = BotConfig.load(config_path)

    runner = CrossoverRunner(config)

    print("🤖 SMA Crossover Bot")
    print(f"🆔 Bot ID: {config.bot_instance_id}")
    print(f"📈 Windows: short={config.short_window} long={config.long_window}")
    print(f"🔮 Oracle: {config.oracle} ({config.oracle_source})")
    print("----------------------------------------")

    runner.run()


if __name__ == "__main__":
    main()
