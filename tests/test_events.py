import json
import logging
import unittest
from unittest import mock

import psycopg2
import requests

from sma_crossover_bot.events import (
    AveragesComputed,
    BotInitialized,
    CompositeEventSink,
    LoggingEventSink,
    MemoryEventSink,
    PeriodsUpdated,
    SignalDetected,
    TradeExecuted,
)
from sma_crossover_bot.integrations import DatabaseEventSink, WebhookEventSink, sign_payload
from sma_crossover_bot.state import TradeSignal

LOGGER = logging.getLogger("tests.events")


class EventPayloadTest(unittest.TestCase):
    def test_as_dict_serializes_signal(self):
        payload = TradeExecuted("bot", TradeSignal.SELL, 123).as_dict()
        self.assertEqual(payload, {"bot_id": "bot", "signal": "sell", "executed_at": 123, "event": "trade_executed"})
        json.dumps(payload)


class LoggingEventSinkTest(unittest.TestCase):
    def test_one_line_per_event(self):
        sink = LoggingEventSink(LOGGER)
        events = [
            BotInitialized("bot", "admin", 5, 20),
            AveragesComputed("bot", 101, 99, 103),
            SignalDetected("bot", TradeSignal.BUY, 101, 99, 103),
            TradeExecuted("bot", TradeSignal.BUY, 1700000000),
            PeriodsUpdated("bot", "admin", 3, 9),
        ]
        with self.assertLogs(LOGGER, level="INFO") as captured:
            for event in events:
                sink.emit(event)

        self.assertEqual(len(captured.output), 5)
        self.assertIn("SMA [bot]: price=103 | short=101 | long=99 | spread=+2", captured.output[1])
        self.assertIn("SIGNAL [bot]: buy @ 103", captured.output[2])
        self.assertIn("TRADE [bot]: BUY 1 unit(s) | user -> bot", captured.output[3])
        self.assertIn("PERIODS [bot]: short=3 long=9", captured.output[4])


class CompositeEventSinkTest(unittest.TestCase):
    def test_failing_sink_does_not_block_others(self):
        broken = mock.Mock()
        broken.emit.side_effect = RuntimeError("sink down")
        memory = MemoryEventSink()
        sink = CompositeEventSink([broken, memory], logger=LOGGER)
        event = BotInitialized("bot", "admin", 5, 20)

        with self.assertLogs(LOGGER, level="WARNING"):
            sink.emit(event)

        self.assertEqual(memory.events, [event])

    def test_close_calls_closable_sinks(self):
        closable = mock.Mock()
        CompositeEventSink([closable, MemoryEventSink()]).close()
        closable.close.assert_called_once_with()


class WebhookEventSinkTest(unittest.TestCase):
    def make_sink(self, **overrides):
        options = {"base_url": "http://dash.local/", "bot_instance_id": "bot", "bot_secret": "s3cret", "logger": LOGGER}
        options.update(overrides)
        return WebhookEventSink(**options)

    def test_disabled_without_secret(self):
        sink = self.make_sink(bot_secret=None)
        with mock.patch("sma_crossover_bot.integrations.requests.post") as post:
            self.assertFalse(sink.send(BotInitialized("bot", "admin", 5, 20)))
        post.assert_not_called()

    @mock.patch("sma_crossover_bot.integrations.requests.post")
    def test_signed_post(self, post):
        post.return_value.status_code = 200
        sink = self.make_sink()

        self.assertTrue(sink.send(SignalDetected("bot", TradeSignal.SELL, 1, 2, 3)))

        args, kwargs = post.call_args
        self.assertEqual(args[0], "http://dash.local/api/bots/bot/events")
        body = kwargs["data"].decode("utf-8")
        self.assertEqual(kwargs["headers"]["X-Bot-Signature"], sign_payload("s3cret", body))
        self.assertEqual(json.loads(body)["signal"], "sell")

    @mock.patch("sma_crossover_bot.integrations.requests.post")
    def test_network_failure_is_swallowed(self, post):
        post.side_effect = requests.ConnectionError("offline")
        self.assertFalse(self.make_sink().send(BotInitialized("bot", "admin", 5, 20)))

    @mock.patch("sma_crossover_bot.integrations.requests.post")
    def test_http_error_status(self, post):
        post.return_value.status_code = 500
        post.return_value.text = "oops"
        self.assertFalse(self.make_sink().send(BotInitialized("bot", "admin", 5, 20)))


class DatabaseEventSinkTest(unittest.TestCase):
    def test_no_url_means_disabled(self):
        sink = DatabaseEventSink(database_url=None, bot_instance_id="bot", logger=LOGGER)
        self.assertIsNone(sink.connection)
        self.assertFalse(sink.log_event(BotInitialized("bot", "admin", 5, 20)))

    @mock.patch("sma_crossover_bot.integrations.psycopg2.connect")
    def test_inserts_event_row(self, connect):
        cursor = connect.return_value.cursor.return_value.__enter__.return_value
        sink = DatabaseEventSink(database_url="postgresql://db", bot_instance_id="bot", logger=LOGGER)

        self.assertTrue(sink.log_event(PeriodsUpdated("bot", "admin", 3, 9)))

        query, params = cursor.execute.call_args[0]
        self.assertIn("INSERT INTO bot_events", query)
        self.assertEqual(params[:2], ("bot", "periods_updated"))
        self.assertEqual(json.loads(params[2])["long_window_size"], 9)

    @mock.patch("sma_crossover_bot.integrations.psycopg2.connect")
    def test_query_failure_reconnects(self, connect):
        cursor = connect.return_value.cursor.return_value.__enter__.return_value
        cursor.execute.side_effect = psycopg2.OperationalError("gone")
        sink = DatabaseEventSink(database_url="postgresql://db", bot_instance_id="bot", logger=LOGGER)

        self.assertFalse(sink.log_event(BotInitialized("bot", "admin", 5, 20)))
        self.assertEqual(connect.call_count, 2)

    @mock.patch("sma_crossover_bot.integrations.psycopg2.connect")
    def test_connection_failure_disables_sink(self, connect):
        connect.side_effect = psycopg2.OperationalError("refused")
        with self.assertLogs(LOGGER, level="WARNING"):
            sink = DatabaseEventSink(database_url="postgresql://db", bot_instance_id="bot", logger=LOGGER)
        self.assertIsNone(sink.connection)

    @mock.patch("sma_crossover_bot.integrations.psycopg2.connect")
    def test_close(self, connect):
        sink = DatabaseEventSink(database_url="postgresql://db", bot_instance_id="bot", logger=LOGGER)
        sink.close()
        connect.return_value.close.assert_called_once_with()
        self.assertIsNone(sink.connection)


if __name__ == '__main__':
    unittest.main()
