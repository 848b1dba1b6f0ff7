"""Tests for ui.output -- JSON export and plain text."""

import json
import os
import tempfile
import unittest

from engine.latency import LatencyResult
from engine.session import build_report
from engine.throughput import ThroughputResult
from ui.output import create_result_json, format_text_result, save_json


def make_report(packet_loss=0.0):
    return build_report(
        LatencyResult(latency=15.0, jitter=2.5, packets=20, packet_loss=packet_loss),
        ThroughputResult(throughput=95.5, bytes_total=12_000_000, duration=1.0,
                         ttfb=40.0, speed_variance=4.0, speed_samples=(90.0, 95.0, 101.5)),
        ThroughputResult(throughput=20.0, bytes_total=2_500_000, duration=1.0),
    )


class TestCreateResultJson(unittest.TestCase):
    def test_structure(self):
        result = create_result_json(make_report(), "ws://test:3001")
        for key in ("timestamp", "server_url", "ping", "download", "upload", "quality", "scenarios"):
            self.assertIn(key, result)
        self.assertEqual(result["server_url"], "ws://test:3001")
        self.assertEqual(result["download"]["throughput"], 95.5)
        self.assertEqual(result["download"]["ttfb"], 40.0)
        self.assertNotIn("ttfb", result["upload"])
        self.assertEqual(result["scenarios"]["streaming"]["recommended_quality"], "4K")

    def test_serialisable(self):
        json.dumps(create_result_json(make_report(), "ws://test"))


class TestSaveJson(unittest.TestCase):
    def test_save_and_read(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "result.json")
            save_json({"a": 1}, path)
            with open(path) as fh:
                self.assertEqual(json.load(fh), {"a": 1})
            self.assertEqual(os.listdir(tmpdir), ["result.json"])

    def test_unwritable_path(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(IOError):
                save_json({"a": 1}, os.path.join(tmpdir, "missing", "result.json"))


class TestFormatText(unittest.TestCase):
    def test_lines(self):
        text = format_text_result(make_report())
        self.assertIn("Ping: 15.0 ms (jitter: 2.50 ms)", text)
        self.assertIn("Download: 95.50 Mbps", text)
        self.assertIn("Upload: 20.00 Mbps", text)
        self.assertIn("Streaming: 4K", text)
        self.assertNotIn("Packet Loss", text)

    def test_packet_loss_shown(self):
        self.assertIn("Packet Loss: 1.5%", format_text_result(make_report(packet_loss=1.5)))


if __name__ == "__main__":
    unittest.main()
