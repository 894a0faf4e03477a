"""Unit tests for rule-based candidate scoring."""

from __future__ import annotations

import unittest

from triage.extraction.types import CandidateEvent
from triage.scoring import ScoringEngine, WeightTable
from triage.scoring.rules import BASE_SCORE, DEFAULT_WEIGHTS


class _CountingWeights:
    def __init__(self, table: WeightTable) -> None:
        self.table = table
        self.calls = 0

    def get_weight_table(self) -> WeightTable:
        self.calls += 1
        return self.table


class ScoringEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = ScoringEngine.with_weights()

    def test_buy_milk_today_scores_action_and_temporal(self) -> None:
        candidate = CandidateEvent(title="Buy milk", details="need milk", date="today", time="")

        scored = self.engine.score(candidate, "")

        self.assertEqual(scored.score, 70)
        self.assertEqual(scored.factors.triggered(), ["action_verbs", "temporal_indicators"])

    def test_scoring_is_deterministic(self) -> None:
        candidate = CandidateEvent(title="Call mom", details="call her about Sunday dinner!", date="sunday")

        first = self.engine.score(candidate, "remember to call mom")
        second = self.engine.score(candidate, "remember to call mom")

        self.assertEqual(first.score, second.score)
        self.assertEqual(first.factors, second.factors)

    def test_repetition_and_direct_command(self) -> None:
        scored = self.engine.score(CandidateEvent(title="Call mom", details="call her about dinner"))

        self.assertTrue(scored.factors.direct_command)
        self.assertTrue(scored.factors.repetition)
        self.assertTrue(scored.factors.action_verbs)

    def test_uncertainty_subtracts_weight(self) -> None:
        scored = self.engine.score(CandidateEvent(title="Maybe call the dentist"))

        self.assertTrue(scored.factors.uncertainty_markers)
        self.assertFalse(scored.factors.direct_command)
        self.assertEqual(
            scored.score,
            BASE_SCORE + DEFAULT_WEIGHTS["action_verbs"] + DEFAULT_WEIGHTS["uncertainty_markers"],
        )

    def test_casual_conversation_subtracts_weight(self) -> None:
        scored = self.engine.score(CandidateEvent(title="Story about the lake", details="back when we were kids"))

        self.assertTrue(scored.factors.casual_conversation)
        self.assertEqual(scored.score, BASE_SCORE + DEFAULT_WEIGHTS["casual_conversation"])

    def test_false_positive_penalty_stacks_on_factors(self) -> None:
        scored = self.engine.score(CandidateEvent(title="I have to say the movie was great"))

        self.assertTrue(scored.factors.intent_phrases)
        self.assertTrue(scored.false_positive_penalty)
        self.assertEqual(scored.score, BASE_SCORE + DEFAULT_WEIGHTS["intent_phrases"] - 30)

    def test_specific_details_quantity_and_place(self) -> None:
        quantity = self.engine.score(CandidateEvent(title="Buy 2 gallons of milk"))
        place = self.engine.score(CandidateEvent(title="Pick up bread", details="at the corner bakery"))

        self.assertTrue(quantity.factors.specific_details)
        self.assertTrue(place.factors.specific_details)

    def test_voice_emphasis(self) -> None:
        caps = self.engine.score(CandidateEvent(title="Pay rent NOW"))
        bang = self.engine.score(CandidateEvent(title="Pay rent", details="seriously!"))
        plain = self.engine.score(CandidateEvent(title="Pay rent"))

        self.assertTrue(caps.factors.voice_emphasis)
        self.assertTrue(bang.factors.voice_emphasis)
        self.assertFalse(plain.factors.voice_emphasis)

    def test_attention_phrase_found_in_source_text(self) -> None:
        candidate = CandidateEvent(title="Buy milk")

        without_source = self.engine.score(candidate, "")
        with_source = self.engine.score(candidate, "Oh and don't forget to buy milk on the way home.")

        self.assertFalse(without_source.factors.attention_phrase)
        self.assertTrue(with_source.factors.attention_phrase)
        self.assertEqual(with_source.score - without_source.score, DEFAULT_WEIGHTS["attention_phrase"])

    def test_score_is_not_clamped(self) -> None:
        candidate = CandidateEvent(
            title="Call the pharmacy URGENT!",
            details="I need to call the pharmacy today, remember to ask for 2 boxes",
        )

        scored = self.engine.score(candidate, "")

        self.assertEqual(scored.score, 125)
        self.assertTrue(scored.passes(95))

    def test_weight_table_is_read_on_every_call(self) -> None:
        weights = _CountingWeights(WeightTable({"action_verbs": 20}))
        engine = ScoringEngine(weights)
        candidate = CandidateEvent(title="Buy milk", details="need milk", date="today")

        self.assertEqual(engine.score(candidate).score, 75)
        weights.table = WeightTable({"action_verbs": 5})
        self.assertEqual(engine.score(candidate).score, 60)
        self.assertEqual(weights.calls, 2)

    def test_unknown_weight_is_rejected(self) -> None:
        with self.assertRaises(KeyError):
            WeightTable({"sentiment": 5})


if __name__ == "__main__":
    unittest.main()
