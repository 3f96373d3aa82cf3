"""
Rule tables for critical-content classification, requirement capture,
contradiction detection, topic extraction and sentence scoring.

Every table maps a pattern to an outcome so that new rules are additive.
Order matters where noted: classification is first-match-wins.
"""

import re
from typing import NamedTuple

from .models import CriticalType


class CriticalRule(NamedTuple):
    pattern: re.Pattern[str]
    type: CriticalType


class ContradictionRule(NamedTuple):
    name: str
    earlier: re.Pattern[str]
    later: re.Pattern[str]


# First match wins, so instruction rules are tried before decision rules, etc.
CRITICAL_PATTERNS: tuple[CriticalRule, ...] = (
    # Explicit instructions
    CriticalRule(re.compile(r"\b(always|never|must|required|mandatory)\b", re.I), "instruction"),
    # Decisions
    CriticalRule(re.compile(r"\b(we decided|the decision|chose to|decided to|will use)\b", re.I), "decision"),
    # Requirements
    CriticalRule(re.compile(r"\b(requirement|constraint|rule|spec|specification)\b", re.I), "requirement"),
    # User preferences
    CriticalRule(re.compile(r"\b(i prefer|i want|don't want|please don't|make sure)\b", re.I), "instruction"),
    # Negated constraints
    CriticalRule(re.compile(r"\b(cannot|must not|impossible|not allowed|forbidden)\b", re.I), "requirement"),
    # Emphasis markers
    CriticalRule(re.compile(r"\b(important|critical|essential|crucial|key point)\b", re.I), "instruction"),
)

# Each pattern captures the obligation that follows the trigger phrase
REQUIREMENT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?:must|should|need to|have to|required to)\s+(.+?)(?:[.!?]|$)", re.I),
    re.compile(r"(?:make sure|ensure|always)\s+(.+?)(?:[.!?]|$)", re.I),
    re.compile(r"(?:don't|never|avoid)\s+(.+?)(?:[.!?]|$)", re.I),
)
REQUIREMENT_MIN_CHARS = 5
REQUIREMENT_MAX_CHARS = 200

# Earlier statement vs later statement; a hit needs differing captured subjects
CONTRADICTION_PATTERNS: tuple[ContradictionRule, ...] = (
    ContradictionRule("replaced-choice", re.compile(r"will use (\w+)", re.I), re.compile(r"use (\w+) instead", re.I)),
    ContradictionRule("switched-decision", re.compile(r"decided on (\w+)", re.I), re.compile(r"switch(?:ed|ing)? to (\w+)", re.I)),
    ContradictionRule("dropped-obligation", re.compile(r"must (\w+)", re.I), re.compile(r"don't need to (\w+)", re.I)),
    ContradictionRule("always-never", re.compile(r"always (\w+)", re.I), re.compile(r"never (\w+)", re.I)),
)

TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    "authentication": ("auth", "login", "jwt", "session", "token", "oauth", "password"),
    "database": ("database", "db", "sql", "query", "table", "schema", "migration"),
    "api": ("api", "endpoint", "rest", "graphql", "route", "request", "response"),
    "frontend": ("react", "vue", "component", "ui", "css", "html", "dom"),
    "testing": ("test", "spec", "mock", "assert", "coverage", "jest", "vitest", "pytest"),
    "deployment": ("deploy", "docker", "kubernetes", "ci", "cd", "pipeline"),
    "security": ("security", "encrypt", "hash", "vulnerability", "xss", "csrf"),
    "performance": ("performance", "optimize", "cache", "speed", "memory", "latency"),
}

# Keywords match at the start of a word: "test" hits "testing", "ui" misses "build"
TOPIC_PATTERNS: dict[str, re.Pattern[str]] = {
    topic: re.compile(r"\b(?:" + "|".join(re.escape(k) for k in keywords) + r")", re.I)
    for topic, keywords in TOPIC_KEYWORDS.items()
}

IMPORTANT_WORDS: tuple[str, ...] = (
    "decided", "choose", "use", "implement", "because", "important",
    "must", "should", "require", "need", "critical", "key",
)

TECHNICAL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b[A-Z][a-z]+(?:[A-Z][a-z]+)+\b"),  # CamelCase
    re.compile(r"\b\w+\(\)"),  # call syntax
    re.compile(r"`[^`]+`"),  # inline code
)

SENTENCE_SPLIT = re.compile(r"[.!?]+")


def classify_critical(text: str) -> CriticalType | None:
    """Return the type of the first critical rule matching text, or None."""
    for rule in CRITICAL_PATTERNS:
        if rule.pattern.search(text):
            return rule.type
    return None


def split_sentences(text: str, min_chars: int = 0) -> list[str]:
    """Split on sentence punctuation, dropping fragments of min_chars or fewer."""
    sentences = (s.strip() for s in SENTENCE_SPLIT.split(text))
    return [s for s in sentences if s and len(s) > min_chars]


def extract_requirements(text: str) -> list[str]:
    """Capture obligation phrases ("must ...", "make sure ...", "never ...")."""
    requirements: list[str] = []
    for pattern in REQUIREMENT_PATTERNS:
        for match in pattern.finditer(text):
            captured = match.group(1)
            if captured and REQUIREMENT_MIN_CHARS < len(captured) < REQUIREMENT_MAX_CHARS:
                requirements.append(captured.strip())
    return requirements


def extract_topics(text: str) -> set[str]:
    """Return the topic themes mentioned anywhere in text."""
    return {topic for topic, pattern in TOPIC_PATTERNS.items() if pattern.search(text)}
