#!/usr/bin/env python3
"""Remote event sinks: signed webhook callbacks and PostgreSQL event logging."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import psycopg2
import requests
from psycopg2.extras import RealDictCursor

from .events import BotEvent


def sign_payload(secret: str, serialized: str) -> str:
    return hmac.new(secret.encode("utf-8"), serialized.encode("utf-8"), hashlib.sha256).hexdigest()


class WebhookEventSink:
    """Send signed event callbacks to the dashboard."""

    def __init__(
        self,
        *,
        base_url: Optional[str],
        bot_instance_id: Optional[str],
        bot_secret: Optional[str],
        logger: logging.Logger,
        timeout: float = 5.0,
    ) -> None:
        self.base_url = base_url.rstrip("/") if base_url else None
        self.bot_instance_id = bot_instance_id
        self.bot_secret = bot_secret
        self.logger = logger
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.base_url and self.bot_instance_id and self.bot_secret)

    def emit(self, event: BotEvent) -> None:
        self.send(event)

    def send(self, event: BotEvent) -> bool:
        if not self.enabled:
            return False

        payload = event.as_dict()
        payload["timestamp"] = datetime.now(timezone.utc).isoformat()
        serialized = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)

        headers = {
            "Content-Type": "application/json",
            "X-Bot-Signature": sign_payload(self.bot_secret, serialized),
            "X-Bot-Timestamp": str(int(time.time() * 1000)),
        }

        endpoint = f"/api/bots/{self.bot_instance_id}/events"
        url = urljoin(self.base_url + "/", endpoint.lstrip("/"))

        try:
            response = requests.post(url, headers=headers, data=serialized.encode("utf-8"), timeout=self.timeout)
        except requests.RequestException as exc:
            self.logger.debug("Event callback failed: %s", exc)
            return False

        if response.status_code >= 400:
            self.logger.debug("Event callback error: %s %s", response.status_code, response.text)
            return False

        self.logger.debug("Event callback sent: %s", event.name)
        return True


class DatabaseEventSink:
    """Append events to the ``bot_events`` table."""

    INSERT_EVENT = (
        "INSERT INTO bot_events (bot_id, event, payload, created_at) "
        "VALUES (%s, %s, %s, %s)"
    )

    def __init__(self, *, database_url: Optional[str], bot_instance_id: Optional[str], logger: logging.Logger) -> None:
        self.database_url = database_url
        self.bot_instance_id = bot_instance_id
        self.logger = logger
        self.connection = None

        if not self.database_url:
            self.logger.debug("No database URL provided; skipping DB integration")
            return

        self._connect()

    def _connect(self) -> None:
        if not self.database_url:
            return
        try:
            self.connection = psycopg2.connect(self.database_url, cursor_factory=RealDictCursor)
            self.connection.autocommit = True
            self.logger.info("Database connection established")
        except psycopg2.Error as exc:
            self.logger.warning("Database connection failed: %s", exc)
            self.connection = None

    def _execute(self, query: str, params: Optional[tuple] = None) -> bool:
        if self.connection is None:
            return False
        try:
            with self.connection.cursor() as cursor:
                cursor.execute(query, params)
            return True
        except psycopg2.Error as exc:
            self.logger.debug("Database query failed: %s", exc)
            self._connect()
            return False

    def emit(self, event: BotEvent) -> None:
        self.log_event(event)

    def log_event(self, event: BotEvent, *, metadata: Optional[Dict[str, Any]] = None) -> bool:
        if not self.connection or not self.bot_instance_id:
            return False
        payload = event.as_dict()
        if metadata:
            payload.update(metadata)
        params = (
            self.bot_instance_id,
            event.name,
            json.dumps(payload),
            datetime.now(timezone.utc),
        )
        return self._execute(self.INSERT_EVENT, params)

    def close(self) -> None:
        if self.connection:
            try:
                self.connection.close()
            finally:
                self.connection = None
