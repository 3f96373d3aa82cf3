"""
Context rot prevention façade.

ContextRotPrevention is the single entry point the rest of an application
uses. It wires the critical-context store, health monitor, drift detector
and compaction engine together so that drift and health are always
computed from the same live history.

Each instance is one session with its own state and store; nothing is
shared at module level. Use open_session() to get a session backed by the
project's SQLite database, and close() (or a ``with`` block) to end it.

Every public operation holds a re-entrant lock. Compaction reads the chunk
collection, plans, then swaps in a rebuilt one, and the lock keeps a
concurrent add_context_chunk() from being lost between the read and the
swap. Once closed, a session rejects every call that writes state or
touches the store.
"""

import logging
import threading
from pathlib import Path
from typing import Any

from context_config import ContextRotConfig, load_config

from .compaction import CompactionEngine
from .critical_context import CriticalContextStore
from .drift import DriftDetector
from .events import COMPACTED, CRITICAL_MARKED, DRIFT_DETECTED, Event, EventBus, NullEventBus
from .exceptions import InvalidOperationError, NotFoundError, StorageError
from .health import ContextHealthMonitor
from .models import (
    ChunkType,
    CompactionOptions,
    CompactionResult,
    CompactionSuggestion,
    ContextChunk,
    ContextHealth,
    CriticalContext,
    CriticalMatch,
    CriticalType,
    DriftResult,
    HealthSnapshot,
    Role,
)
from .storage import ContextStore, InMemoryContextStore, SQLiteContextStore

logger = logging.getLogger(__name__)

MAX_SUMMARY_ITEMS = 3


class ContextRotPrevention:
    """Coordinates health, drift, pinning and compaction for one session."""

    def __init__(
        self,
        store: ContextStore | None = None,
        config: ContextRotConfig | None = None,
        event_bus: EventBus | None = None,
    ):
        self.config = config or ContextRotConfig()
        self.event_bus: EventBus = event_bus or NullEventBus()
        self._store: ContextStore = store if store is not None else InMemoryContextStore()
        self._lock = threading.RLock()
        self._closed = False

        self.critical = CriticalContextStore(self._store)
        self.monitor = ContextHealthMonitor(
            token_limit=self.config.token_limit,
            thresholds=self.config.health,
            critical_store=self.critical,
            history_store=self._store,
        )
        self.drift = DriftDetector(self.critical, self.config.drift, self.config.health.drift_warning)
        self.compaction = CompactionEngine(self.monitor, self.critical, self.config.compaction)

    # ========== Lifecycle ==========

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """End the session and release the store. Safe to call twice."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                self._store.close()
            except StorageError as e:
                logger.warning("Failed to close context store: %s", e)

    def __enter__(self) -> "ContextRotPrevention":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise InvalidOperationError("Context session is closed")

    # ========== Budget ==========

    def set_token_limit(self, limit: int) -> None:
        with self._lock:
            self._ensure_open()
            self.monitor.set_token_limit(limit)

    def set_current_tokens(self, tokens: int) -> None:
        with self._lock:
            self._ensure_open()
            self.monitor.set_current_tokens(tokens)

    def estimate_tokens(self, text: str) -> int:
        return self.monitor.estimate_tokens(text)

    # ========== Message Tracking ==========

    def add_message(self, role: Role, content: str) -> ContextChunk:
        """Record a conversation message for drift analysis and budget it as a chunk."""
        with self._lock:
            self._ensure_open()
            self.drift.add_message(role, content)
            return self._ingest(content, self.monitor.estimate_tokens(content), "message")

    def add_context_chunk(
        self,
        content: str,
        tokens: int | None = None,
        type: ChunkType = "message",
    ) -> ContextChunk:
        """Budget a retrieved context fragment; tokens are estimated when omitted."""
        with self._lock:
            self._ensure_open()
            if tokens is None:
                tokens = self.monitor.estimate_tokens(content)
            return self._ingest(content, tokens, type)

    def clear_conversation(self) -> None:
        with self._lock:
            self._ensure_open()
            self.drift.clear_history()
            self.monitor.clear_chunks()

    def _ingest(self, content: str, tokens: int, chunk_type: ChunkType) -> ContextChunk:
        is_critical = bool(self.critical.extract_critical_from_text(content)) or self._mirrors_pinned(content)
        chunk = self.monitor.add_chunk(
            ContextChunk(content=content, tokens=tokens, type=chunk_type, is_critical=is_critical)
        )
        if self.config.compaction.relevance_decay:
            self.monitor.decay_relevance()
        return chunk

    def _mirrors_pinned(self, content: str) -> bool:
        lowered = content.lower()
        return any(
            item.never_compress and item.content.strip() and item.content.strip().lower() in lowered
            for item in self.critical.get_critical_context()
        )

    # ========== Drift Detection ==========

    def detect_drift(self) -> DriftResult:
        with self._lock:
            result = self.drift.detect_drift()
            if result.drift_detected:
                self.event_bus.publish(
                    Event(
                        type=DRIFT_DETECTED,
                        properties={
                            "drift_score": result.drift_score,
                            "missing_requirements": len(result.missing_requirements),
                            "contradictions": len(result.contradictions),
                        },
                    )
                )
            return result

    def add_requirement(self, requirement: str) -> None:
        with self._lock:
            self._ensure_open()
            self.drift.add_requirement(requirement)

    def get_requirements(self) -> list[str]:
        with self._lock:
            return self.drift.get_initial_requirements()

    # ========== Critical Context ==========

    def mark_critical(
        self,
        content: str,
        type: CriticalType | None = None,
        reason: str | None = None,
        source: str | None = None,
        never_compress: bool = True,
    ) -> CriticalContext:
        """Pin content and flag every chunk that mirrors it as critical."""
        with self._lock:
            self._ensure_open()
            item = self.critical.mark_critical(
                content,
                type=type,
                reason=reason,
                source=source,
                never_compress=never_compress,
            )
            promoted = self.monitor.promote_critical(content) if never_compress else 0
            self.event_bus.publish(
                Event(
                    type=CRITICAL_MARKED,
                    properties={"id": item.id, "type": item.type, "promoted_chunks": promoted},
                )
            )
            return item

    def get_critical_context(self, type: CriticalType | None = None) -> list[CriticalContext]:
        with self._lock:
            return self.critical.get_critical_context(type)

    def get_critical_by_id(self, critical_id: str) -> CriticalContext:
        """
        Look up a pinned item.

        Raises:
            NotFoundError: If no item has this id
        """
        with self._lock:
            item = self.critical.get_critical_by_id(critical_id)
            if item is None:
                raise NotFoundError("Critical context", critical_id)
            return item

    def remove_critical(self, critical_id: str) -> bool:
        with self._lock:
            self._ensure_open()
            return self.critical.remove_critical(critical_id)

    def get_all_critical_content(self) -> str:
        with self._lock:
            return self.critical.get_all_critical_content()

    def is_critical(self, content: str) -> bool:
        return self.critical.is_critical(content)

    def extract_critical_from_text(self, text: str) -> list[CriticalMatch]:
        return self.critical.extract_critical_from_text(text)

    # ========== Health ==========

    def get_context_health(self) -> ContextHealth:
        """Measure health fed by the live drift score and record a snapshot."""
        with self._lock:
            self._ensure_open()
            health = self._measure()
            self._record(health, compaction_triggered=False)
            return health

    def get_health_history(self, limit: int = 20) -> list[HealthSnapshot]:
        with self._lock:
            self._ensure_open()
            return self.monitor.get_health_history(limit)

    def _measure(self) -> ContextHealth:
        return self.monitor.get_health(self.drift.detect_drift().drift_score)

    def _record(self, health: ContextHealth, compaction_triggered: bool) -> None:
        snapshot = HealthSnapshot(
            health=health.health,
            utilization_percent=health.utilization_percent,
            drift_score=health.drift_score,
            tokens_used=health.tokens_used,
            tokens_limit=health.tokens_limit,
            relevance_score=health.relevance_score,
            compaction_triggered=compaction_triggered,
        )
        try:
            self._store.append_health(snapshot)
        except StorageError as e:
            logger.warning("Failed to record health snapshot: %s", e)

    # ========== Compaction ==========

    def suggest_compaction(self) -> CompactionSuggestion:
        with self._lock:
            return self.compaction.suggest_compaction()

    def trigger_compaction(
        self, options: CompactionOptions | dict[str, Any] | None = None
    ) -> CompactionResult:
        """
        Apply compaction with explicit options.

        Args:
            options: CompactionOptions, or a dict validated into one

        Raises:
            pydantic.ValidationError: If options are malformed
        """
        if isinstance(options, dict):
            options = CompactionOptions.model_validate(options)
        with self._lock:
            self._ensure_open()
            result = self.compaction.compact(options)
            self._after_compaction(result)
            return result

    def auto_compact(self) -> CompactionResult:
        """Compact with a strategy picked from the current health level."""
        with self._lock:
            self._ensure_open()
            result = self.compaction.auto_compact(self._measure())
            self._after_compaction(result)
            return result

    def _after_compaction(self, result: CompactionResult) -> None:
        # Bookkeeping only: a failure here must not undo the compaction
        self._record(self.monitor.get_health(self.drift.detect_drift().drift_score), compaction_triggered=True)
        self.event_bus.publish(
            Event(
                type=COMPACTED,
                properties={
                    "strategy": result.strategy,
                    "tokens_before": result.tokens_before,
                    "tokens_after": result.tokens_after,
                    "tokens_saved": result.tokens_saved,
                    "summarized_chunks": result.summarized_chunks,
                    "removed_chunks": result.removed_chunks,
                },
            )
        )

    # ========== Summary for AI ==========

    def get_context_summary_for_ai(self) -> str:
        """Render health, drift warnings and pinned context for prompt injection."""
        with self._lock:
            drift = self.drift.detect_drift()
            health = self.monitor.get_health(drift.drift_score)
            critical = self.critical.get_all_critical_content()

            parts = [f"Context Health: {health.health.upper()} ({health.utilization_percent}% used)"]

            if health.drift_detected:
                parts.append(f"\nWARNING: Drift detected (score: {health.drift_score})")

                if drift.missing_requirements:
                    parts.append("\nMissing requirements:")
                    parts.extend(f"- {req}" for req in drift.missing_requirements[:MAX_SUMMARY_ITEMS])

                if drift.suggested_reminders:
                    parts.append("\nReminders:")
                    parts.extend(f"- {reminder}" for reminder in drift.suggested_reminders[:MAX_SUMMARY_ITEMS])

            if critical:
                parts.append(f"\n{critical}")

            if health.compaction_needed:
                suggestion = health.suggestions[0] if health.suggestions else "Consider compacting context"
                parts.append(f"\nSuggestion: {suggestion}")

            return "\n".join(parts)


def open_session(
    project_root: Path | str,
    config: ContextRotConfig | None = None,
    event_bus: EventBus | None = None,
) -> ContextRotPrevention:
    """
    Open a session backed by the project's SQLite store.

    If the database cannot be opened the session falls back to an in-memory
    store, so scoring and compaction keep working without persistence.

    Args:
        project_root: Project directory; the database path is resolved against it
        config: Configuration (loaded from the project when omitted)
        event_bus: Receiver for engine events

    Returns:
        An open ContextRotPrevention session
    """
    root = Path(project_root)
    if config is None:
        config = load_config(root)

    db_path = Path(config.database_path)
    if config.database_path != ":memory:" and not db_path.is_absolute():
        db_path = root / db_path

    store: ContextStore
    try:
        store = SQLiteContextStore(db_path)
    except StorageError as e:
        logger.warning("Persistence unavailable, using in-memory store: %s", e)
        store = InMemoryContextStore()

    logger.info("Opened context session for %s", root)
    return ContextRotPrevention(store=store, config=config, event_bus=event_bus)
