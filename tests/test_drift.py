"""
Tests for drift detection.
"""

import pytest

from context_config import DriftConfig
from context_rot import CriticalContextStore, DriftDetector, InMemoryContextStore


@pytest.fixture
def detector() -> DriftDetector:
    return DriftDetector(CriticalContextStore(InMemoryContextStore()))


class TestDegenerateInputs:
    """Empty and tiny histories give neutral results."""

    def test_empty_session(self, detector):
        """Zero messages: no drift of any kind."""
        result = detector.detect_drift()
        assert result.drift_score == 0
        assert result.drift_detected is False
        assert result.missing_requirements == []
        assert result.contradictions == []
        assert result.topic_shift == 0

    def test_single_message(self, detector):
        """One message, even with requirements, is not drift."""
        detector.add_message("user", "You must validate all user input before saving to the database.")
        result = detector.detect_drift()
        assert result.drift_score == 0
        assert result.drift_detected is False

    def test_no_detector_store(self):
        """A detector without pinned context still works."""
        detector = DriftDetector()
        detector.add_message("assistant", "Done.")
        assert detector.detect_drift().drift_score == 0


class TestRequirementCapture:
    """Requirements come from the first user messages only."""

    def test_captured_from_user_messages(self, detector):
        detector.add_message("user", "You must validate all user input.")
        detector.add_message("assistant", "You must run the linter.")
        assert detector.get_initial_requirements() == ["validate all user input"]

    def test_only_first_five_user_messages(self, detector):
        for i in range(5):
            detector.add_message("user", f"Message number {i} with nothing required.")
        detector.add_message("user", "You must validate all user input.")
        assert detector.get_initial_requirements() == []

    def test_assistant_messages_do_not_use_up_capture(self, detector):
        for _ in range(6):
            detector.add_message("assistant", "Working on it.")
        detector.add_message("user", "Make sure the tests are green.")
        assert detector.get_initial_requirements() == ["the tests are green"]

    def test_add_requirement(self, detector):
        detector.add_requirement("keep responses short")
        assert detector.get_initial_requirements() == ["keep responses short"]

    def test_clear_history(self, detector):
        detector.add_message("user", "You must validate all user input.")
        detector.clear_history()
        assert detector.get_history() == []
        assert detector.get_initial_requirements() == []


class TestRequirementAdherence:
    """Missing requirements dominate the score."""

    def test_partial_adherence(self, detector):
        detector.add_message("user", "You must validate all user input. Never store passwords in plain text.")
        detector.add_message("assistant", "I will validate all user input with pydantic.")

        result = detector.detect_drift()
        assert result.missing_requirements == ["store passwords in plain text"]
        assert result.drift_score == pytest.approx(0.2)
        assert result.drift_detected is False
        assert result.suggested_reminders == ["Remember: store passwords in plain text"]

    def test_all_missing(self, detector):
        detector.add_message("user", "You must validate all user input.")
        detector.add_message("assistant", "Here is the new landing page.")

        result = detector.detect_drift()
        assert result.missing_requirements == ["validate all user input"]
        assert result.drift_score == pytest.approx(0.4)
        assert result.drift_detected is True

    def test_reminders_include_pinned_items(self):
        critical = CriticalContextStore(InMemoryContextStore())
        critical.mark_critical("Use FastAPI for the API", type="decision")
        critical.mark_critical("Latency under 200ms", type="requirement")
        detector = DriftDetector(critical)
        detector.add_message("user", "hello")

        assert detector.detect_drift().suggested_reminders == [
            "Requirement: Latency under 200ms",
            "Decision: Use FastAPI for the API",
        ]


class TestContradictions:
    """Opposing assistant statements are flagged."""

    def test_simple_contradiction(self, detector):
        detector.add_message("assistant", "We will use PostgreSQL for storage.")
        detector.add_message("assistant", "Let's use SQLite instead for simplicity.")

        result = detector.detect_drift()
        assert len(result.contradictions) == 1
        contradiction = result.contradictions[0]
        assert contradiction.earlier == "We will use PostgreSQL for storage."
        assert contradiction.severity == "low"
        assert result.drift_score == pytest.approx(0.15)

    def test_same_subject_is_not_a_contradiction(self, detector):
        detector.add_message("assistant", "We will use Redis here.")
        detector.add_message("assistant", "Fine, use Redis instead of memcached.")
        assert detector.detect_drift().contradictions == []

    def test_user_messages_ignored(self, detector):
        detector.add_message("user", "We will use PostgreSQL.")
        detector.add_message("user", "Use SQLite instead.")
        assert detector.detect_drift().contradictions == []

    @pytest.mark.parametrize("gap, severity", [(3, "low"), (7, "medium"), (12, "high")])
    def test_severity_by_distance(self, detector, gap, severity):
        detector.add_message("assistant", "We will use Redis.")
        for _ in range(gap - 1):
            detector.add_message("user", "ok")
        detector.add_message("assistant", "Use Memcached instead.")
        assert detector.detect_drift().contradictions[0].severity == severity

    def test_excerpts_truncated(self, detector):
        detector.add_message("assistant", "We will use Redis. " + "x" * 300)
        detector.add_message("assistant", "Use Memcached instead.")
        assert len(detector.detect_drift().contradictions[0].earlier) == 100

    def test_pathological_history_is_capped(self, detector):
        """Many contradictions keep only five and never push the score past 1."""
        for i in range(20):
            detector.add_message("assistant", f"We will use tool{i} and use other{i} instead.")

        result = detector.detect_drift()
        assert len(result.contradictions) == 5
        assert 0 <= result.drift_score <= 1


class TestTopicShift:
    """Topic shift compares early and recent themes."""

    def test_topic_shift(self, detector):
        detector.add_message("user", "Set up the database schema and migration.")
        for _ in range(12):
            detector.add_message("user", "Build the react component with css.")

        result = detector.detect_drift()
        assert result.topic_shift == pytest.approx(0.5)
        assert result.drift_score == pytest.approx(0.15)

    def test_same_topics(self, detector):
        detector.add_message("user", "Add a login endpoint.")
        detector.add_message("assistant", "Added the login endpoint.")
        assert detector.detect_drift().topic_shift == 0


class TestBounds:
    """Drift score stays in range for any history length."""

    @pytest.mark.parametrize("count", [0, 1, 2, 10, 50, 250])
    def test_score_in_range(self, count):
        detector = DriftDetector(config=DriftConfig(max_history=100))
        for i in range(count):
            role = "user" if i % 2 == 0 else "assistant"
            text = "You must always write docs." if role == "user" else f"We switched to tool{i}; decided on x{i}."
            detector.add_message(role, text)

        result = detector.detect_drift()
        assert 0 <= result.drift_score <= 1
        assert 0 <= result.topic_shift <= 1
        assert len(detector.get_history()) == min(count, 100)


class TestDetectionThreshold:
    """drift_detected follows the configured cut-off."""

    def contradict(self, detector):
        detector.add_message("assistant", "We will use PostgreSQL for storage.")
        detector.add_message("assistant", "Let's use SQLite instead for simplicity.")

    def test_default_threshold(self, detector):
        self.contradict(detector)
        result = detector.detect_drift()
        assert result.drift_score == pytest.approx(0.15)
        assert result.drift_detected is False

    def test_lower_threshold(self):
        detector = DriftDetector(drift_threshold=0.1)
        self.contradict(detector)
        assert detector.detect_drift().drift_detected is True
