"""Tests for engine.scenarios -- streaming, gaming and video-call verdicts."""

import unittest

from engine.latency import LatencyResult
from engine.quality import QualityResult
from engine.scenarios import evaluate_gaming, evaluate_streaming, evaluate_video_call
from engine.throughput import ThroughputResult


def ping(value=20.0, jitter=5.0, loss=None):
    return LatencyResult(latency=value, jitter=jitter, packets=20, packet_loss=loss)


def mbps(value):
    return ThroughputResult(throughput=value)


class TestStreaming(unittest.TestCase):
    def test_4k(self):
        result = evaluate_streaming(mbps(50), ping(50))
        self.assertTrue(result.can_stream_4k)
        self.assertTrue(result.can_stream_1080p)
        self.assertEqual(result.recommended_quality, "4K")
        self.assertEqual(result.score, 100)
        self.assertEqual(result.scenario, "streaming")

    def test_1080p_latency_boundary(self):
        result = evaluate_streaming(mbps(25), ping(99))
        self.assertTrue(result.can_stream_1080p)
        self.assertFalse(result.can_stream_4k)
        self.assertEqual(result.recommended_quality, "1080p")

        result = evaluate_streaming(mbps(25), ping(100))
        self.assertFalse(result.can_stream_1080p)
        self.assertEqual(result.recommended_quality, "720p")

    def test_low_bandwidth(self):
        result = evaluate_streaming(mbps(4), ping(150))
        self.assertEqual(result.recommended_quality, "480p")
        self.assertTrue(result.suitable)
        self.assertEqual(result.score, 8)

        self.assertFalse(evaluate_streaming(mbps(2), ping()).suitable)

    def test_capability_monotonic_in_throughput(self):
        previous = None
        for value in range(0, 120, 5):
            result = evaluate_streaming(mbps(value), ping(40))
            caps = (result.can_stream_1080p, result.can_stream_4k, result.score)
            if previous is not None:
                self.assertGreaterEqual(caps, previous)
            previous = caps


class TestGaming(unittest.TestCase):
    def test_excellent(self):
        result = evaluate_gaming(ping(15, 5, loss=0), mbps(80))
        self.assertTrue(result.suitable)
        self.assertIn("Excellent connection for gaming!", result.recommendations)

    def test_sub_scores(self):
        result = evaluate_gaming(ping(50, 15, loss=2.5), mbps(10))
        self.assertEqual(result.latency_score, 50)
        self.assertEqual(result.jitter_score, 50)
        self.assertEqual(result.packet_loss_score, 50)
        self.assertEqual(result.overall_score, 50)
        self.assertTrue(result.suitable)

    def test_needs_download(self):
        result = evaluate_gaming(ping(15, 5), mbps(2))
        self.assertFalse(result.suitable)
        self.assertIn("Low download speed - game updates may be slow", result.recommendations)

    def test_high_latency(self):
        result = evaluate_gaming(ping(150, 40, loss=3), mbps(4))
        self.assertFalse(result.suitable)
        self.assertEqual(result.latency_score, 0)


class TestVideoCall(unittest.TestCase):
    def test_suitable(self):
        result = evaluate_video_call(mbps(20), ping(15), QualityResult(stability_score=100))
        self.assertTrue(result.suitable)
        self.assertEqual(result.scenario, "video-call")
        self.assertEqual(result.upload_score, 100)

    def test_weighted_score(self):
        result = evaluate_video_call(mbps(3), ping(100), QualityResult(stability_score=80))
        self.assertEqual(result.upload_score, 100)
        self.assertEqual(result.latency_score, 50)
        self.assertEqual(result.overall_score, 79)
        self.assertFalse(result.suitable)

    def test_upload_advice_tiers(self):
        very_low = evaluate_video_call(mbps(0.3), ping(), QualityResult(stability_score=90))
        self.assertIn("Very low upload speed - video calls may not work well", very_low.recommendations)
        low = evaluate_video_call(mbps(1.0), ping(), QualityResult(stability_score=90))
        self.assertIn(
            "Low upload speed - at least 1.5 Mbps is recommended for HD video calls",
            low.recommendations,
        )

    def test_unstable_connection(self):
        result = evaluate_video_call(mbps(20), ping(15), QualityResult(stability_score=60))
        self.assertFalse(result.suitable)


class TestPurity(unittest.TestCase):
    def test_same_inputs_same_outputs(self):
        args = (mbps(33), ping(42, 7, loss=1))
        self.assertEqual(evaluate_streaming(*args), evaluate_streaming(*args))
        self.assertEqual(
            evaluate_gaming(args[1], args[0]).to_dict(),
            evaluate_gaming(args[1], args[0]).to_dict(),
        )
        quality = QualityResult(stability_score=88, is_stable=True)
        self.assertEqual(
            evaluate_video_call(args[0], args[1], quality),
            evaluate_video_call(args[0], args[1], quality),
        )


if __name__ == "__main__":
    unittest.main()
