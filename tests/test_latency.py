"""Tests for engine.latency -- the ping/pong probe phase."""

import unittest

from engine.errors import AbnormalClosure, IdleTimeout, ProtocolViolation, TransportFailure
from engine.latency import LatencyProber, LatencyResult
from engine.phase import PhaseState

from tests.fakes import FakeConnection, FakeConnector

RESULT = {"latency": 12.5, "jitter": 1.5, "packets": 3}


class TestLatencyResult(unittest.TestCase):
    def test_from_message_required_fields(self):
        result = LatencyResult.from_message(dict(RESULT, type="result"))
        self.assertEqual(result.latency, 12.5)
        self.assertEqual(result.jitter, 1.5)
        self.assertEqual(result.packets, 3)
        self.assertIsNone(result.packet_loss)

    def test_packet_loss_clamped(self):
        result = LatencyResult.from_message(dict(RESULT, packetLoss=140))
        self.assertEqual(result.packet_loss, 100.0)
        result = LatencyResult.from_message(dict(RESULT, packetLoss=-3))
        self.assertEqual(result.packet_loss, 0.0)

    def test_negative_latency_clamped(self):
        result = LatencyResult.from_message(dict(RESULT, latency=-1))
        self.assertEqual(result.latency, 0.0)

    def test_missing_field_rejected(self):
        with self.assertRaises(ProtocolViolation):
            LatencyResult.from_message({"latency": 1, "jitter": 1})

    def test_to_dict_omits_unreported(self):
        d = LatencyResult(latency=10, jitter=1, packets=5).to_dict()
        self.assertNotIn("packet_loss", d)
        d = LatencyResult(latency=10, jitter=1, packets=5, packet_loss=0.0).to_dict()
        self.assertEqual(d["packet_loss"], 0.0)


class TestLatencyProber(unittest.IsolatedAsyncioTestCase):
    def make_prober(self, conn, idle_timeout=1.0):
        return LatencyProber("ws://test", FakeConnector(conn), idle_timeout=idle_timeout)

    async def test_echoes_every_probe(self):
        conn = FakeConnection()
        for seq in range(3):
            conn.push_json(type="ping", timestamp=1000 + seq, sequence=seq)
        conn.push_json(type="result", **RESULT)

        events = []
        prober = self.make_prober(conn)
        prober.on_progress = events.append
        result = await prober.run()

        pongs = conn.sent_json()
        self.assertEqual([p["type"] for p in pongs], ["pong"] * 3)
        self.assertEqual([p["sequence"] for p in pongs], [0, 1, 2])
        self.assertEqual([p["timestamp"] for p in pongs], [1000, 1001, 1002])
        self.assertEqual(len(events), 3)
        self.assertTrue(all(e.phase == "ping" and e.unit == "ms" for e in events))
        self.assertEqual(result.latency, 12.5)
        self.assertIs(prober.state, PhaseState.CLOSED)
        self.assertEqual(conn.closed_with, 1000)

    async def test_connects_to_ping_path(self):
        conn = FakeConnection()
        conn.push_json(type="result", **RESULT)
        connector = FakeConnector(conn)
        await LatencyProber("ws://test/", connector).run()
        self.assertEqual(connector.urls, ["ws://test/ws/ping"])

    async def test_garbage_frame_ignored(self):
        conn = FakeConnection()
        conn.push("not json")
        conn.push_json(nope=1)
        conn.push_json(type="ping", timestamp=1, sequence=0)
        conn.push_json(type="result", **RESULT)

        with self.assertLogs("engine.phase", level="WARNING"):
            result = await self.make_prober(conn).run()
        self.assertEqual(result.packets, 3)
        self.assertEqual(len(conn.sent_json()), 1)

    async def test_abnormal_closure(self):
        conn = FakeConnection()
        conn.push_json(type="ping", timestamp=1, sequence=0)
        conn.push_close(1006)
        prober = self.make_prober(conn)

        with self.assertRaises(AbnormalClosure) as ctx:
            await prober.run()
        self.assertEqual(ctx.exception.code, 1006)
        self.assertEqual(ctx.exception.phase, "ping")
        self.assertIn("1006", str(ctx.exception))
        self.assertIs(prober.state, PhaseState.FAILED)

    async def test_normal_close_before_result(self):
        conn = FakeConnection()
        conn.push_close(1000)
        with self.assertRaises(ProtocolViolation):
            await self.make_prober(conn).run()

    async def test_idle_timeout(self):
        conn = FakeConnection()
        with self.assertRaises(IdleTimeout) as ctx:
            await self.make_prober(conn, idle_timeout=0.05).run()
        self.assertEqual(ctx.exception.phase, "ping")
        self.assertEqual(conn.closed_with, 1000)

    async def test_malformed_result(self):
        conn = FakeConnection()
        conn.push_json(type="result", latency="fast")
        with self.assertRaises(ProtocolViolation):
            await self.make_prober(conn).run()

    async def test_connect_failure_tagged_with_phase(self):
        with self.assertRaises(TransportFailure) as ctx:
            await LatencyProber("ws://test", FakeConnector()).run()
        self.assertEqual(ctx.exception.phase, "ping")


if __name__ == "__main__":
    unittest.main()
