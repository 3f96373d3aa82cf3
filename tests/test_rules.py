"""
Tests for the rule tables.
"""

import pytest

from context_rot.rules import (
    CONTRADICTION_PATTERNS,
    CRITICAL_PATTERNS,
    TOPIC_KEYWORDS,
    classify_critical,
    extract_requirements,
    extract_topics,
    split_sentences,
)


class TestCriticalClassification:
    """Test first-match-wins critical classification."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("We must always validate input before processing", "instruction"),
            ("Never commit secrets", "instruction"),
            ("We decided to use JWT tokens", "decision"),
            ("The team chose to ship weekly", "decision"),
            ("This is a hard constraint of the system", "requirement"),
            ("I prefer tabs over spaces", "instruction"),
            ("You cannot write to that directory", "requirement"),
            ("This is an important detail", "instruction"),
            ("The weather is nice", None),
        ],
    )
    def test_classify(self, text, expected):
        """Each rule maps to its type; unmatched text is not critical."""
        assert classify_critical(text) == expected

    def test_instruction_outranks_decision(self):
        """An instruction modal wins over a decision verb in the same text."""
        assert classify_critical("We decided we must use Postgres") == "instruction"

    def test_table_is_ordered(self):
        """The first rule covers explicit instructions."""
        assert CRITICAL_PATTERNS[0].type == "instruction"
        assert CRITICAL_PATTERNS[1].type == "decision"


class TestRequirementExtraction:
    """Test obligation phrase capture."""

    def test_captures_obligations(self):
        """Obligation, assurance and prohibition phrases are captured."""
        text = "You must validate all user input. Never store passwords in plain text."
        assert extract_requirements(text) == [
            "validate all user input",
            "store passwords in plain text",
        ]

    def test_make_sure(self):
        """'make sure' captures the rest of the sentence."""
        assert extract_requirements("Please make sure tests pass on CI!") == ["tests pass on CI"]

    def test_short_captures_dropped(self):
        """Captures of five characters or fewer are ignored."""
        assert extract_requirements("You must go.") == []

    def test_no_requirements(self):
        """Plain statements capture nothing."""
        assert extract_requirements("Here is the file you asked for.") == []


class TestContradictionTable:
    """Test the contradiction templates individually."""

    @pytest.mark.parametrize(
        "name, earlier, later, subjects",
        [
            ("replaced-choice", "We will use Postgres", "Let's use SQLite instead", ("Postgres", "SQLite")),
            ("switched-decision", "We decided on React", "We switched to Vue", ("React", "Vue")),
            ("dropped-obligation", "You must test", "We don't need to lint", ("test", "lint")),
            ("always-never", "always validate", "never sanitize", ("validate", "sanitize")),
        ],
    )
    def test_templates(self, name, earlier, later, subjects):
        """Each template captures the subject of both statements."""
        rule = next(r for r in CONTRADICTION_PATTERNS if r.name == name)
        assert rule.earlier.search(earlier).group(1) == subjects[0]
        assert rule.later.search(later).group(1) == subjects[1]


class TestTopics:
    """Test topic extraction."""

    def test_all_themes_present(self):
        """The vocabulary covers the eight themes."""
        assert set(TOPIC_KEYWORDS) == {
            "authentication", "database", "api", "frontend",
            "testing", "deployment", "security", "performance",
        }

    def test_extract_topics(self):
        """Keywords map to their themes."""
        topics = extract_topics("Add a login endpoint backed by a SQL table")
        assert topics == {"authentication", "api", "database"}

    def test_word_start_matching(self):
        """Keywords match word starts only."""
        assert extract_topics("build the thing") == set()
        assert extract_topics("testing the deployment") == {"testing", "deployment"}


class TestSplitSentences:
    """Test sentence splitting."""

    def test_split_and_filter(self):
        """Short fragments are dropped when a minimum is given."""
        text = "First sentence here. Ok! Is this the third one?"
        assert split_sentences(text) == ["First sentence here", "Ok", "Is this the third one"]
        assert split_sentences(text, min_chars=10) == ["First sentence here", "Is this the third one"]
