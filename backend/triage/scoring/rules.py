"""Lexical rule tables for candidate confidence scoring.

Every factor maps to a phrase list (or pattern) and a signed default weight.
Weights are operator-tunable through the preference store; the phrase lists
are fixed.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

BASE_SCORE = 40
FALSE_POSITIVE_PENALTY = 30

ACTION_VERBS = "action_verbs"
INTENT_PHRASES = "intent_phrases"
TEMPORAL_INDICATORS = "temporal_indicators"
PRIORITY_MARKERS = "priority_markers"
DIRECT_COMMAND = "direct_command"
SPECIFIC_DETAILS = "specific_details"
REPETITION = "repetition"
VOICE_EMPHASIS = "voice_emphasis"
ATTENTION_PHRASE = "attention_phrase"
UNCERTAINTY_MARKERS = "uncertainty_markers"
CASUAL_CONVERSATION = "casual_conversation"

FACTOR_NAMES: tuple[str, ...] = (
    ACTION_VERBS,
    INTENT_PHRASES,
    TEMPORAL_INDICATORS,
    PRIORITY_MARKERS,
    DIRECT_COMMAND,
    SPECIFIC_DETAILS,
    REPETITION,
    VOICE_EMPHASIS,
    ATTENTION_PHRASE,
    UNCERTAINTY_MARKERS,
    CASUAL_CONVERSATION,
)

NEGATIVE_FACTORS = frozenset({UNCERTAINTY_MARKERS, CASUAL_CONVERSATION})

DEFAULT_WEIGHTS: dict[str, int] = {
    ACTION_VERBS: 15,
    INTENT_PHRASES: 10,
    TEMPORAL_INDICATORS: 15,
    PRIORITY_MARKERS: 10,
    DIRECT_COMMAND: 10,
    SPECIFIC_DETAILS: 5,
    REPETITION: 5,
    VOICE_EMPHASIS: 5,
    ATTENTION_PHRASE: 10,
    UNCERTAINTY_MARKERS: -15,
    CASUAL_CONVERSATION: -10,
}

PHRASES: dict[str, tuple[str, ...]] = {
    ACTION_VERBS: (
        "buy",
        "call",
        "email",
        "text",
        "send",
        "pick up",
        "drop off",
        "book",
        "schedule",
        "pay",
        "order",
        "finish",
        "submit",
        "review",
        "prepare",
        "fix",
        "clean",
        "meet",
        "visit",
        "return",
        "cancel",
        "renew",
        "sign up",
        "follow up",
        "reply",
        "write",
    ),
    INTENT_PHRASES: (
        "need to",
        "have to",
        "has to",
        "got to",
        "gotta",
        "going to",
        "gonna",
        "want to",
        "plan to",
        "planning to",
        "should",
        "must",
        "i'll",
        "let's",
    ),
    TEMPORAL_INDICATORS: (
        "today",
        "tonight",
        "tomorrow",
        "this morning",
        "this afternoon",
        "this evening",
        "this week",
        "next week",
        "next month",
        "weekend",
        "monday",
        "tuesday",
        "wednesday",
        "thursday",
        "friday",
        "saturday",
        "sunday",
        "end of the day",
        "deadline",
        "due",
        "o'clock",
    ),
    PRIORITY_MARKERS: (
        "urgent",
        "asap",
        "as soon as possible",
        "important",
        "priority",
        "critical",
        "immediately",
        "right away",
    ),
    ATTENTION_PHRASE: (
        "remember to",
        "don't forget",
        "do not forget",
        "make sure",
        "note to self",
        "remind me",
        "keep in mind",
    ),
    UNCERTAINTY_MARKERS: (
        "maybe",
        "might",
        "perhaps",
        "possibly",
        "not sure",
        "i think",
        "probably",
        "if i have time",
        "someday",
        "we'll see",
    ),
    CASUAL_CONVERSATION: (
        "by the way",
        "just saying",
        "anyway",
        "kidding",
        "funny",
        "remember when",
        "back when",
        "used to",
        "random thought",
    ),
}

# Title prefixes that read as a command addressed to the assistant.
COMMAND_VERBS: tuple[str, ...] = (
    "remind",
    "schedule",
    "book",
    "call",
    "email",
    "text",
    "send",
    "set up",
    "add",
    "cancel",
    "confirm",
    "pay",
    "submit",
    "reply",
    "follow up",
)

# Admissions and mentions that look like intent but are not tasks.
FALSE_POSITIVE_PHRASES: tuple[str, ...] = (
    "i have to say",
    "i need to say",
    "i have to admit",
    "i must admit",
    "i have to tell you",
    "i need to tell you",
    "as i mentioned",
    "i mentioned",
    "i was going to say",
)

# Factors that also look at the full transcript, not only the candidate text.
SOURCE_TEXT_FACTORS = frozenset({TEMPORAL_INDICATORS, ATTENTION_PHRASE})

_UNITS = (
    r"lbs?|pounds?|kg|oz|ounces?|gallons?|liters?|litres?|ml|dozen|packs?|boxes|bottles?|bags?|cans?"
    r"|cups?|items?|pieces?|units?|minutes?|mins?|hours?|hrs?|dollars?|bucks"
)
_PLACES = r"store|shop|market|supermarket|pharmacy|mall|bakery|office|clinic"
QUANTITY_PATTERN = re.compile(rf"(?:\$\d+|\b\d+(?:\.\d+)?\s*(?:{_UNITS})\b)")
PLACE_PATTERN = re.compile(rf"\b(?:at|in|from)\s+(?:the\s+)?[a-z0-9'&]+(?:\s+[a-z0-9'&]+)?\s+(?:{_PLACES})\b")
CAPS_RUN_PATTERN = re.compile(r"\b[A-Z]{3,}\b")


def phrase_pattern(phrases: Iterable[str]) -> re.Pattern[str]:
    """Compile a word-bounded alternation matching any of ``phrases``."""

    ordered = sorted(phrases, key=len, reverse=True)
    return re.compile(r"\b(?:" + "|".join(re.escape(p) for p in ordered) + r")\b")


PHRASE_PATTERNS: dict[str, re.Pattern[str]] = {name: phrase_pattern(values) for name, values in PHRASES.items()}
COMMAND_PATTERN = re.compile(r"^(?:" + "|".join(re.escape(v) for v in COMMAND_VERBS) + r")\b")
FALSE_POSITIVE_PATTERN = phrase_pattern(FALSE_POSITIVE_PHRASES)


class WeightTable:
    """Mutable named weight per scoring factor."""

    def __init__(self, weights: Mapping[str, int] | None = None) -> None:
        self._weights = dict(DEFAULT_WEIGHTS)
        for name, value in (weights or {}).items():
            self.set(name, value)

    def __getitem__(self, name: str) -> int:
        return self._weights[name]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WeightTable):
            return NotImplemented
        return self._weights == other._weights

    def __repr__(self) -> str:
        return f"WeightTable({self._weights!r})"

    def set(self, name: str, value: int) -> None:
        if name not in DEFAULT_WEIGHTS:
            raise KeyError(f"Unknown scoring factor: {name}")
        self._weights[name] = int(value)

    def as_dict(self) -> dict[str, int]:
        return dict(self._weights)
