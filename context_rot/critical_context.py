"""
Pinned (critical) context.

Critical items are decisions, requirements and explicit instructions that
must survive every compaction. They are held in memory and written through
to a ContextStore; a failing store is logged and otherwise ignored so that
already-loaded items keep protecting the chunks that mirror them.
"""

import logging
import time
import uuid

from .exceptions import StorageError
from .models import CriticalContext, CriticalMatch, CriticalType
from .rules import classify_critical, split_sentences
from .storage import ContextStore, InMemoryContextStore

logger = logging.getLogger(__name__)

# Rendering order and headings for prompt injection
SECTION_HEADINGS: tuple[tuple[CriticalType, str], ...] = (
    ("decision", "DECISIONS"),
    ("requirement", "REQUIREMENTS"),
    ("instruction", "INSTRUCTIONS"),
    ("custom", "OTHER CRITICAL"),
)


class CriticalContextStore:
    """Persists, classifies and renders permanently pinned context items."""

    def __init__(self, store: ContextStore | None = None):
        self._store: ContextStore = store if store is not None else InMemoryContextStore()
        self._items: list[CriticalContext] = []
        try:
            # Store returns newest first; keep oldest first internally
            self._items = list(reversed(self._store.list_critical()))
        except StorageError as e:
            logger.warning("Could not load pinned context, starting empty: %s", e)

    def is_critical(self, text: str) -> bool:
        """Return True if text matches any critical-pattern rule."""
        return classify_critical(text) is not None

    def infer_type(self, content: str) -> CriticalType:
        """Classify content by the first matching rule; unmatched text is 'custom'."""
        return classify_critical(content) or "custom"

    def mark_critical(
        self,
        content: str,
        type: CriticalType | None = None,
        reason: str | None = None,
        source: str | None = None,
        never_compress: bool = True,
    ) -> CriticalContext:
        """
        Pin content permanently.

        Args:
            content: Text to pin
            type: Item type; inferred from the content when omitted
            reason: Why the item was pinned
            source: Where it came from (file, message, tool call)
            never_compress: Exempt mirroring chunks from every compaction strategy

        Returns:
            The pinned CriticalContext
        """
        item = CriticalContext(
            id=str(uuid.uuid4()),
            type=type or self.infer_type(content),
            content=content,
            reason=reason,
            source=source,
            created_at=time.time(),
            never_compress=never_compress,
        )
        self._items.append(item)

        try:
            self._store.insert_critical(item)
        except StorageError as e:
            logger.warning("Pinned context %s kept in memory only: %s", item.id, e)

        logger.debug("Marked %s context %s", item.type, item.id)
        return item

    def get_critical_context(self, type: CriticalType | None = None) -> list[CriticalContext]:
        """Return pinned items, newest first, optionally filtered by type."""
        items = reversed(self._items)
        if type is not None:
            return [item for item in items if item.type == type]
        return list(items)

    def get_critical_by_id(self, critical_id: str) -> CriticalContext | None:
        for item in self._items:
            if item.id == critical_id:
                return item
        return None

    def remove_critical(self, critical_id: str) -> bool:
        """Unpin an item. Returns False if no such item exists."""
        item = self.get_critical_by_id(critical_id)
        if item is None:
            return False
        self._items.remove(item)

        try:
            self._store.delete_critical(critical_id)
        except StorageError as e:
            logger.warning("Unpinned %s in memory only: %s", critical_id, e)
        return True

    def get_critical_count(self) -> int:
        return len(self._items)

    def extract_critical_from_text(self, text: str) -> list[CriticalMatch]:
        """Return every sentence of text that matches the critical rules."""
        matches: list[CriticalMatch] = []
        for sentence in split_sentences(text):
            critical_type = classify_critical(sentence)
            if critical_type is not None:
                matches.append(CriticalMatch(content=sentence, type=critical_type))
        return matches

    def get_all_critical_content(self) -> str:
        """Render all pinned items as grouped sections for prompt injection."""
        items = self.get_critical_context()
        if not items:
            return ""

        parts: list[str] = []
        for critical_type, heading in SECTION_HEADINGS:
            lines = [f"- {item.content}" for item in items if item.type == critical_type]
            if lines:
                parts.append(f"{heading}:\n" + "\n".join(lines))

        return "\n\n".join(parts)
