"""Tests for engine.quality -- stability score and advice."""

import random
import unittest

from engine.latency import LatencyResult
from engine.quality import (
    ADVICE_EXCELLENT,
    ADVICE_GAMING_EXCELLENT,
    ADVICE_HIGH_JITTER,
    ADVICE_HIGH_LATENCY,
    ADVICE_STREAM_4K,
    ADVICE_VIDEO_OK,
    calculate_stability_score,
    clamp_score,
    score_quality,
)
from engine.throughput import ThroughputResult


def latency(value=50.0, jitter=15.0, loss=None):
    return LatencyResult(latency=value, jitter=jitter, packets=20, packet_loss=loss)


def speed(mbps=50.0, variance=None, ttfb=None):
    return ThroughputResult(throughput=mbps, speed_variance=variance, ttfb=ttfb)


class TestStabilityScore(unittest.TestCase):
    def test_clean_connection_scores_full(self):
        self.assertEqual(calculate_stability_score(latency(), speed(), speed()), 100)

    def test_excellent_session(self):
        quality = score_quality(
            latency(15, 5, loss=0),
            speed(80, variance=4, ttfb=120),
            speed(20, variance=1),
        )
        self.assertEqual(quality.stability_score, 100)
        self.assertTrue(quality.is_stable)
        self.assertIn(ADVICE_EXCELLENT, quality.recommendations)
        self.assertIn(ADVICE_STREAM_4K, quality.recommendations)
        self.assertIn(ADVICE_GAMING_EXCELLENT, quality.recommendations)
        self.assertIn(ADVICE_VIDEO_OK, quality.recommendations)

    def test_poor_session(self):
        quality = score_quality(latency(150, 40, loss=3), speed(4), speed(0.8))
        # 100 - 15 (loss) - 4 (jitter) - 5 (latency)
        self.assertEqual(quality.stability_score, 76)
        self.assertFalse(quality.is_stable)

    def test_jitter_penalty(self):
        self.assertEqual(calculate_stability_score(latency(jitter=25), speed(), speed()), 99)

    def test_penalty_caps(self):
        self.assertEqual(calculate_stability_score(latency(jitter=200), speed(), speed()), 80)
        self.assertEqual(calculate_stability_score(latency(value=1000), speed(), speed()), 80)
        self.assertEqual(calculate_stability_score(latency(loss=20), speed(), speed()), 50)
        self.assertEqual(calculate_stability_score(latency(), speed(10, variance=100), speed()), 85)
        self.assertEqual(calculate_stability_score(latency(), speed(ttfb=2000), speed()), 90)

    def test_floor_at_zero(self):
        score = calculate_stability_score(
            latency(1000, 200, loss=20),
            speed(10, variance=100, ttfb=2000),
            speed(10, variance=100),
        )
        self.assertEqual(score, 0)

    def test_bonus_requires_low_loss(self):
        self.assertEqual(calculate_stability_score(latency(10, 2, loss=0.4), speed(), speed()), 100)
        # 100 - 5 (loss) with no bonus
        self.assertEqual(calculate_stability_score(latency(10, 2, loss=1.0), speed(), speed()), 95)

    def test_unreported_loss_is_no_loss(self):
        self.assertEqual(
            calculate_stability_score(latency(loss=None), speed(), speed()),
            calculate_stability_score(latency(loss=0.0), speed(), speed()),
        )

    def test_packet_loss_monotonic(self):
        scores = [
            calculate_stability_score(latency(loss=loss), speed(), speed())
            for loss in (0, 0.5, 1, 2, 5, 10, 20, 50, 100)
        ]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_score_always_integer_in_range(self):
        rng = random.Random(1234)
        for _ in range(500):
            score = calculate_stability_score(
                latency(rng.uniform(0, 2000), rng.uniform(0, 500), rng.choice([None, rng.uniform(0, 100)])),
                speed(rng.uniform(0, 2000), rng.choice([None, rng.uniform(0, 1e4)]), rng.choice([None, rng.uniform(0, 5000)])),
                speed(rng.uniform(0, 2000), rng.choice([None, rng.uniform(0, 1e4)])),
            )
            self.assertIsInstance(score, int)
            self.assertTrue(0 <= score <= 100)

    def test_zero_throughput_has_no_variation_penalty(self):
        self.assertEqual(calculate_stability_score(latency(), speed(0, variance=50), speed(0)), 100)

    def test_clamp_score(self):
        self.assertEqual(clamp_score(-4.2), 0)
        self.assertEqual(clamp_score(104), 100)
        self.assertEqual(clamp_score(72.6), 73)


class TestRecommendations(unittest.TestCase):
    def test_no_duplicates(self):
        quality = score_quality(latency(250, 60), speed(2), speed(2))
        recs = quality.recommendations
        self.assertEqual(len(recs), len(set(recs)))
        self.assertEqual(recs.count(ADVICE_HIGH_LATENCY), 1)
        self.assertEqual(recs.count(ADVICE_HIGH_JITTER), 1)

    def test_order_preserved(self):
        quality = score_quality(latency(250, 60, loss=10), speed(2), speed(2))
        recs = list(quality.recommendations)
        self.assertLess(recs.index(ADVICE_HIGH_JITTER), recs.index(ADVICE_HIGH_LATENCY))

    def test_unstable_with_high_jitter(self):
        quality = score_quality(latency(20, 35), speed(), speed())
        self.assertGreaterEqual(quality.stability_score, 70)
        self.assertFalse(quality.is_stable)

    def test_to_dict(self):
        d = score_quality(latency(), speed(), speed()).to_dict()
        self.assertEqual(set(d), {"stability_score", "is_stable", "recommendations"})
        self.assertIsInstance(d["recommendations"], list)


if __name__ == "__main__":
    unittest.main()
