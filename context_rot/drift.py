"""
Drift detection.

Compares the live conversation against requirements stated in the first
few user messages. Three signals feed the score: requirement adherence
(weighted highest, it is the only signal tied to stated intent),
contradictions between assistant statements, and topic shift between the
start of the session and now.
"""

import logging
import time
from collections import deque

from context_config import DriftConfig
from context_config.defaults import DRIFT_WARNING

from .critical_context import CriticalContextStore
from .models import Contradiction, ConversationMessage, CriticalContext, DriftResult, Role
from .rules import CONTRADICTION_PATTERNS, extract_requirements, extract_topics

logger = logging.getLogger(__name__)

ADHERENCE_WEIGHT = 0.4
CONTRADICTION_WEIGHT_EACH = 0.15
CONTRADICTION_WEIGHT_CAP = 0.3
TOPIC_SHIFT_WEIGHT = 0.3

KEYWORD_MIN_CHARS = 3  # keywords must be longer than this
KEYWORD_MATCH_RATIO = 0.5
EXCERPT_CHARS = 100

REMINDER_PREFIXES = {
    "decision": "Decision",
    "requirement": "Requirement",
    "instruction": "Instruction",
    "custom": "Note",
}


class DriftDetector:
    """Scores how far the conversation has wandered from its stated requirements."""

    def __init__(
        self,
        critical_store: CriticalContextStore | None = None,
        config: DriftConfig | None = None,
        drift_threshold: float = DRIFT_WARNING,
    ):
        self._critical_store = critical_store
        self.config = config or DriftConfig()
        # Same cut-off the health monitor uses for drift_detected
        self.drift_threshold = drift_threshold
        self._history: deque[ConversationMessage] = deque(maxlen=self.config.max_history)
        self._early: list[ConversationMessage] = []
        self._user_messages_seen = 0
        self._requirements: list[str] = []

    def add_message(self, role: Role, content: str, timestamp: float | None = None) -> ConversationMessage:
        """Record a message; requirements are captured from early user messages."""
        message = ConversationMessage(
            role=role,
            content=content,
            timestamp=timestamp if timestamp is not None else time.time(),
        )
        self._history.append(message)
        if len(self._early) < self.config.window:
            self._early.append(message)

        if role == "user":
            self._user_messages_seen += 1
            if self._user_messages_seen <= self.config.requirement_capture_messages:
                captured = extract_requirements(content)
                if captured:
                    logger.debug("Captured %d requirement(s) from user message", len(captured))
                self._requirements.extend(captured)

        return message

    def clear_history(self) -> None:
        self._history.clear()
        self._early = []
        self._user_messages_seen = 0
        self._requirements = []

    def get_history(self) -> list[ConversationMessage]:
        return list(self._history)

    def get_initial_requirements(self) -> list[str]:
        return list(self._requirements)

    def add_requirement(self, requirement: str) -> None:
        self._requirements.append(requirement)

    def detect_drift(self) -> DriftResult:
        """Compute a fresh drift assessment from the live history."""
        if not self._history:
            return DriftResult()

        history = list(self._history)
        window = self.config.window

        adherence, missing = self._check_requirement_adherence(history)
        contradictions = self._find_contradictions(history)
        topic_shift = self._calculate_topic_shift(self._early, history[-window:])

        contradiction_part = min(CONTRADICTION_WEIGHT_CAP, CONTRADICTION_WEIGHT_EACH * len(contradictions))
        drift_score = min(
            1.0,
            ADHERENCE_WEIGHT * (1 - adherence) + contradiction_part + TOPIC_SHIFT_WEIGHT * topic_shift,
        )
        drift_score = round(drift_score, 2)

        pinned = self._critical_store.get_critical_context() if self._critical_store else []

        return DriftResult(
            drift_score=drift_score,
            drift_detected=drift_score >= self.drift_threshold,
            missing_requirements=missing,
            contradictions=contradictions,
            suggested_reminders=self._generate_reminders(missing, pinned),
            topic_shift=round(topic_shift, 2),
        )

    def _check_requirement_adherence(self, history: list[ConversationMessage]) -> tuple[float, list[str]]:
        if not self._requirements:
            return 1.0, []

        assistant_messages = [m for m in history if m.role == "assistant"][-self.config.window:]
        if not assistant_messages:
            # Nothing has been answered yet, so nothing can have been missed
            return 1.0, []

        recent_text = " ".join(m.content.lower() for m in assistant_messages)
        missing: list[str] = []
        found = 0

        for requirement in self._requirements:
            keywords = [w for w in requirement.lower().split() if len(w) > KEYWORD_MIN_CHARS]
            matched = sum(1 for keyword in keywords if keyword in recent_text)
            if matched >= len(keywords) * KEYWORD_MATCH_RATIO:
                found += 1
            else:
                missing.append(requirement)

        return found / len(self._requirements), missing

    def _find_contradictions(self, history: list[ConversationMessage]) -> list[Contradiction]:
        indexed = [(i, m) for i, m in enumerate(history) if m.role == "assistant"]
        contradictions: list[Contradiction] = []

        for a, (i, earlier) in enumerate(indexed):
            for j, later in indexed[a + 1:]:
                for rule in CONTRADICTION_PATTERNS:
                    earlier_match = rule.earlier.search(earlier.content)
                    if not earlier_match:
                        continue
                    later_match = rule.later.search(later.content)
                    if not later_match:
                        continue

                    earlier_subject = earlier_match.group(1).lower()
                    later_subject = later_match.group(1).lower()
                    if earlier_subject != later_subject:
                        contradictions.append(
                            Contradiction(
                                earlier=earlier.content[:EXCERPT_CHARS],
                                later=later.content[:EXCERPT_CHARS],
                                severity=_severity(j - i),
                            )
                        )

        if self.config.max_contradictions == 0:
            return []
        return contradictions[-self.config.max_contradictions:]

    def _calculate_topic_shift(
        self,
        early: list[ConversationMessage],
        recent: list[ConversationMessage],
    ) -> float:
        early_topics = extract_topics(" ".join(m.content for m in early))
        recent_topics = extract_topics(" ".join(m.content for m in recent))

        if not early_topics or not recent_topics:
            return 0.0

        similarity = len(early_topics & recent_topics) / len(early_topics | recent_topics)
        return 1 - similarity

    def _generate_reminders(self, missing: list[str], pinned: list[CriticalContext]) -> list[str]:
        limit = self.config.max_reminders
        reminders = [f"Remember: {requirement}" for requirement in missing[:limit]]
        for item in pinned[:limit]:
            reminders.append(f"{REMINDER_PREFIXES[item.type]}: {item.content}")
        return reminders


def _severity(distance: int) -> str:
    if distance > 10:
        return "high"
    if distance > 5:
        return "medium"
    return "low"
