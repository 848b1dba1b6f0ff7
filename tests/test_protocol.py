"""Tests for engine.protocol -- control-frame encoding and validation."""

import json
import unittest

from engine.errors import ProtocolViolation
from engine.protocol import (
    ProgressEvent,
    decode_message,
    encode_message,
    finite_number,
    optional_number,
    require_number,
)


class TestMessages(unittest.TestCase):
    def test_encode(self):
        self.assertEqual(
            json.loads(encode_message("pong", timestamp=5, sequence=2)),
            {"type": "pong", "timestamp": 5, "sequence": 2},
        )

    def test_decode(self):
        self.assertEqual(decode_message('{"type": "ping", "sequence": 1}')["sequence"], 1)

    def test_decode_garbage(self):
        for text in ("", "not json", "[1, 2]", '{"type": 5}', '{"sequence": 1}'):
            with self.assertRaises(ProtocolViolation):
                decode_message(text)


class TestNumbers(unittest.TestCase):
    def test_require_number(self):
        self.assertEqual(require_number({"x": 3}, "x"), 3.0)
        with self.assertRaises(ProtocolViolation):
            require_number({}, "x")
        with self.assertRaises(ProtocolViolation):
            require_number({"x": "3"}, "x")

    def test_bool_is_not_a_number(self):
        with self.assertRaises(ProtocolViolation):
            require_number({"x": True}, "x")

    def test_optional_number(self):
        self.assertIsNone(optional_number({}, "x"))
        self.assertEqual(optional_number({"x": 1.5}, "x"), 1.5)
        with self.assertRaises(ProtocolViolation):
            optional_number({"x": [1]}, "x")


class TestNonFiniteNumbers(unittest.TestCase):
    def test_json_infinity_and_nan_rejected(self):
        message = decode_message('{"type": "result", "bytes": Infinity, "jitter": NaN}')
        with self.assertRaises(ProtocolViolation):
            require_number(message, "bytes")
        with self.assertRaises(ProtocolViolation):
            optional_number(message, "jitter")

    def test_huge_integer_rejected(self):
        with self.assertRaises(ProtocolViolation):
            require_number({"bytes": 10 ** 400}, "bytes")

    def test_finite_number(self):
        self.assertEqual(finite_number(3, "x"), 3.0)
        with self.assertRaises(ProtocolViolation):
            finite_number(float("-inf"), "x")


class TestProgressEvent(unittest.TestCase):
    def test_to_dict(self):
        event = ProgressEvent(phase="download", value=12.5, unit="Mbps", timestamp=150.04)
        self.assertEqual(
            event.to_dict(),
            {"phase": "download", "value": 12.5, "unit": "Mbps", "timestamp": 150.0},
        )

    def test_to_dict_without_timestamp(self):
        self.assertNotIn("timestamp", ProgressEvent("ping", 0.0, "ms").to_dict())


if __name__ == "__main__":
    unittest.main()
