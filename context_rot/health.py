"""
Context health monitoring.

The monitor owns the ordered chunk collection and the token budget, and
classifies health from utilization and a caller-supplied drift score.
Measuring has no side effects: recording snapshots in the history log is
left to the façade.
"""

import logging

from context_config import HealthThresholds
from context_config.defaults import DEFAULT_TOKEN_LIMIT, HEALTH_HISTORY_LIMIT

from .critical_context import CriticalContextStore
from .exceptions import ConfigurationError, StorageError
from .models import ContextChunk, ContextHealth, HealthSnapshot, HealthStatus
from .storage import ContextStore
from .tokens import count_chunk_tokens, estimate_tokens

logger = logging.getLogger(__name__)

# Relevance aging applied by decay_relevance()
DECAY_RATE = 0.95
CRITICAL_DECAY_RATE = 0.98
MIN_RELEVANCE = 0.1


class ContextHealthMonitor:
    """Tracks chunks in scope against a token budget."""

    def __init__(
        self,
        token_limit: int = DEFAULT_TOKEN_LIMIT,
        thresholds: HealthThresholds | None = None,
        critical_store: CriticalContextStore | None = None,
        history_store: ContextStore | None = None,
    ):
        self._token_limit = 0
        self.set_token_limit(token_limit)
        self.thresholds = thresholds or HealthThresholds()
        self._critical_store = critical_store
        self._history_store = history_store

        self._chunks: list[ContextChunk] = []
        self._current_tokens = 0

    # ------------------------------------------------------------------
    # Budget
    # ------------------------------------------------------------------

    @property
    def token_limit(self) -> int:
        return self._token_limit

    @property
    def current_tokens(self) -> int:
        return self._current_tokens

    def set_token_limit(self, limit: int) -> None:
        """
        Set the context budget.

        Raises:
            ConfigurationError: If limit is not a positive integer
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ConfigurationError(f"Token limit must be a positive integer, got {limit!r}")
        self._token_limit = limit

    def set_current_tokens(self, tokens: int) -> None:
        """
        Override the tokens-used counter with an externally measured value.

        Raises:
            ConfigurationError: If tokens is not a positive integer
        """
        if isinstance(tokens, bool) or not isinstance(tokens, int) or tokens <= 0:
            raise ConfigurationError(f"Current tokens must be a positive integer, got {tokens!r}")
        self._current_tokens = tokens

    def estimate_tokens(self, text: str) -> int:
        return estimate_tokens(text)

    # ------------------------------------------------------------------
    # Chunk collection
    # ------------------------------------------------------------------

    def add_chunk(self, chunk: ContextChunk) -> ContextChunk:
        """Append a chunk to the end of the collection and count its tokens."""
        self._chunks.append(chunk)
        self._current_tokens += chunk.tokens
        return chunk

    def remove_chunk(self, chunk_id: str) -> bool:
        for index, chunk in enumerate(self._chunks):
            if chunk.id == chunk_id:
                del self._chunks[index]
                self._current_tokens = max(0, self._current_tokens - chunk.tokens)
                return True
        return False

    def get_chunks(self) -> list[ContextChunk]:
        """Return a copy of the chunk collection, oldest first."""
        return list(self._chunks)

    def clear_chunks(self) -> None:
        self._chunks = []
        self._current_tokens = 0

    def replace_chunks(self, chunks: list[ContextChunk], tokens_used: int | None = None) -> None:
        """
        Swap in a rebuilt chunk collection in one step.

        tokens_used defaults to the chunks' own total. Compaction passes an
        adjusted counter instead, so a value set with set_current_tokens()
        keeps tracking the externally measured usage.
        """
        self._chunks = list(chunks)
        self._current_tokens = count_chunk_tokens(self._chunks) if tokens_used is None else max(0, tokens_used)

    def promote_critical(self, content: str) -> int:
        """
        Flag chunks that mirror a pinned item as critical.

        A chunk mirrors the item when its content contains the pinned text.

        Returns:
            Number of chunks newly promoted
        """
        needle = content.strip().lower()
        if not needle:
            return 0

        promoted = 0
        for chunk in self._chunks:
            if not chunk.is_critical and needle in chunk.content.lower():
                chunk.is_critical = True
                promoted += 1
        return promoted

    def decay_relevance(self) -> None:
        """Age chunk relevance: older positions decay faster, critical chunks slower."""
        total = len(self._chunks)
        for index, chunk in enumerate(self._chunks):
            rate = CRITICAL_DECAY_RATE if chunk.is_critical else DECAY_RATE
            position_factor = (index + 1) / total
            chunk.relevance_score = max(
                MIN_RELEVANCE,
                chunk.relevance_score * rate * (0.5 + 0.5 * position_factor),
            )

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def utilization_percent(self, tokens: int | None = None) -> float:
        used = self._current_tokens if tokens is None else tokens
        return round(used / self._token_limit * 100, 1)

    def get_health(self, drift_score: float = 0.0) -> ContextHealth:
        """Classify context health from utilization and drift_score."""
        tokens_used = self._current_tokens
        utilization = tokens_used / self._token_limit * 100

        if self._chunks:
            relevance = sum(c.relevance_score for c in self._chunks) / len(self._chunks)
        else:
            relevance = 1.0

        health = self._classify(utilization, drift_score)
        critical_count = self._critical_store.get_critical_count() if self._critical_store else 0

        return ContextHealth(
            tokens_used=tokens_used,
            tokens_limit=self._token_limit,
            utilization_percent=round(utilization, 1),
            health=health,
            relevance_score=round(relevance, 2),
            drift_score=round(drift_score, 2),
            critical_context_count=critical_count,
            drift_detected=drift_score >= self.thresholds.drift_warning,
            compaction_needed=health != "good",
            suggestions=self._generate_suggestions(health, utilization, drift_score, critical_count),
        )

    def _classify(self, utilization: float, drift_score: float) -> HealthStatus:
        t = self.thresholds
        if utilization >= t.utilization_critical or drift_score >= t.drift_critical:
            return "critical"
        if utilization >= t.utilization_warning or drift_score >= t.drift_warning:
            return "warning"
        return "good"

    def _generate_suggestions(
        self,
        health: HealthStatus,
        utilization: float,
        drift_score: float,
        critical_count: int,
    ) -> list[str]:
        if health == "good":
            return ["Context is healthy, no action needed"]

        t = self.thresholds
        suggestions: list[str] = []

        if utilization >= t.utilization_critical:
            suggestions.append("Context nearly full - trigger compaction now")
            suggestions.append('Consider using the "aggressive" compaction strategy')
        elif utilization >= t.utilization_warning:
            suggestions.append("Context getting large - consider triggering compaction")
            suggestions.append('Use the "summarize" strategy to compress old context')

        if drift_score >= t.drift_critical:
            suggestions.append("Significant drift detected - earlier instructions may be ignored")
            suggestions.append("Review drift reminders and restate critical context")
        elif drift_score >= t.drift_warning:
            suggestions.append("Some drift detected - review drift reminders and mark critical items")

        if critical_count == 0:
            suggestions.append("No critical context marked - consider marking important decisions/requirements")

        return suggestions

    def get_health_history(self, limit: int = HEALTH_HISTORY_LIMIT) -> list[HealthSnapshot]:
        """Return the most recent recorded snapshots, newest first."""
        if self._history_store is None:
            return []
        try:
            return self._history_store.list_health(limit)
        except StorageError as e:
            logger.warning("Could not read health history: %s", e)
            return []
