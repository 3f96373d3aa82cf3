"""
Context compaction.

Reduces the token cost of the chunk collection by removing stale chunks and
replacing mid-relevance chunks with extractive summaries. Two guarantees
hold under every strategy:

- the newest ``preserve_recent`` chunks come back unchanged and in order;
- critical chunks are never removed or rewritten while ``preserve_critical``
  is set, and chunks mirroring a never-compress pinned item never are.
"""

import logging
import math
import re
from dataclasses import dataclass, field

from context_config import CompactionConfig
from context_config.defaults import AUTO_COMPACT_PLAN

from .critical_context import CriticalContextStore
from .health import ContextHealthMonitor
from .logging_config import log_timing
from .models import (
    STRATEGY_ORDER,
    CompactionOptions,
    CompactionResult,
    CompactionStrategy,
    CompactionSuggestion,
    ContextChunk,
    ContextHealth,
)
from .rules import IMPORTANT_WORDS, TECHNICAL_PATTERNS, split_sentences
from .tokens import count_chunk_tokens, estimate_tokens

logger = logging.getLogger(__name__)

MAX_PASSES = len(STRATEGY_ORDER)
FALLBACK_SUMMARY_CHARS = 100
SLOW_PASS_MS = 250
SUMMARY_TAG = re.compile(r"^\[Summary - \w+\]:\s*")


@dataclass
class _PassOutcome:
    strategy: CompactionStrategy
    tokens_before: int
    tokens_after: int
    kept: int = 0
    preserved_critical: int = 0
    summarized: int = 0
    removed: int = 0
    summaries: list[str] = field(default_factory=list)


class CompactionEngine:
    """Plans and applies compaction over a ContextHealthMonitor's chunks."""

    def __init__(
        self,
        monitor: ContextHealthMonitor,
        critical_store: CriticalContextStore | None = None,
        config: CompactionConfig | None = None,
    ):
        self.monitor = monitor
        self.critical_store = critical_store
        self.config = config or CompactionConfig()

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def suggest_compaction(self) -> CompactionSuggestion:
        """
        Partition chunks into keep / summarize / remove buckets without
        touching the collection.

        Returns:
            CompactionSuggestion with projected savings and utilization
        """
        keep_at = self._threshold("summarize")
        summarize_at = self._threshold("selective")
        pinned = self._pinned_needles()

        critical: list[ContextChunk] = []
        summarizable: list[ContextChunk] = []
        removable: list[ContextChunk] = []

        for chunk in self.monitor.get_chunks():
            if self._is_protected(chunk, True, pinned) or chunk.relevance_score >= keep_at:
                critical.append(chunk)
            elif chunk.relevance_score >= summarize_at:
                summarizable.append(chunk)
            else:
                removable.append(chunk)

        removable_tokens = count_chunk_tokens(removable)
        summarizable_tokens = count_chunk_tokens(summarizable)
        summarized_tokens = math.ceil(round(summarizable_tokens * (1 - self.config.compression_ratio), 6))
        tokens_saved = removable_tokens + (summarizable_tokens - summarized_tokens)

        new_tokens = max(0, self.monitor.current_tokens - tokens_saved)

        return CompactionSuggestion(
            critical=critical,
            summarizable=summarizable,
            removable=removable,
            tokens_saved=tokens_saved,
            new_utilization=self.monitor.utilization_percent(new_tokens),
        )

    # ------------------------------------------------------------------
    # Applying
    # ------------------------------------------------------------------

    def compact(self, options: CompactionOptions | None = None) -> CompactionResult:
        """
        Compact the chunk collection in place.

        When ``target_utilization`` is set and a pass leaves utilization above
        it, the next strategy in ``STRATEGY_ORDER`` is tried. At most one pass
        runs per strategy, so there are never more than three passes.

        Args:
            options: Compaction options (defaults to the configured strategy settings)

        Returns:
            CompactionResult aggregated over every pass that ran
        """
        if options is None:
            options = CompactionOptions(preserve_recent=self.config.preserve_recent)

        start = STRATEGY_ORDER.index(options.strategy)
        outcomes: list[_PassOutcome] = []

        for strategy in STRATEGY_ORDER[start:start + MAX_PASSES]:
            with log_timing(logger, f"Compaction pass ({strategy})", slow_ms=SLOW_PASS_MS):
                outcome = self._compact_once(strategy, options)
            outcomes.append(outcome)

            if options.target_utilization is None:
                break
            utilization = outcome.tokens_after / self.monitor.token_limit * 100
            if utilization <= options.target_utilization:
                break
            if strategy != STRATEGY_ORDER[-1]:
                logger.info(
                    "Utilization %.1f%% still above target %.1f%% after %s pass, escalating",
                    utilization,
                    options.target_utilization,
                    strategy,
                )

        first, last = outcomes[0], outcomes[-1]
        summaries = [summary for outcome in outcomes for summary in outcome.summaries]

        result = CompactionResult(
            success=True,
            strategy=last.strategy,
            strategies_applied=[o.strategy for o in outcomes],
            tokens_before=first.tokens_before,
            tokens_after=last.tokens_after,
            tokens_saved=first.tokens_before - last.tokens_after,
            preserved_critical=last.preserved_critical,
            kept_chunks=last.kept,
            summarized_chunks=sum(o.summarized for o in outcomes),
            removed_chunks=sum(o.removed for o in outcomes),
            summaries=summaries,
        )

        logger.info(
            "Compaction complete (%s): %d -> %d tokens (saved %d)",
            " -> ".join(result.strategies_applied),
            result.tokens_before,
            result.tokens_after,
            result.tokens_saved,
        )
        return result

    def auto_compact(self, health: ContextHealth | None = None) -> CompactionResult:
        """
        Compact with a strategy and target chosen from the health level.

        critical -> aggressive/40%, warning -> selective/50%, good -> summarize/60%.

        Args:
            health: Current health; measured without drift when omitted
        """
        if health is None:
            health = self.monitor.get_health()

        strategy, target = AUTO_COMPACT_PLAN[health.health]

        return self.compact(
            CompactionOptions(
                strategy=strategy,
                preserve_recent=self.config.auto_preserve_recent,
                target_utilization=target,
                preserve_critical=True,
            )
        )

    def _compact_once(self, strategy: CompactionStrategy, options: CompactionOptions) -> _PassOutcome:
        chunks = self.monitor.get_chunks()
        tokens_before = self.monitor.current_tokens

        split = max(0, len(chunks) - options.preserve_recent)
        older, recent = chunks[:split], chunks[split:]

        threshold = self._threshold(strategy)
        pinned = self._pinned_needles()

        to_keep: list[ContextChunk] = []
        to_summarize: list[ContextChunk] = []
        to_remove: list[ContextChunk] = []
        preserved_critical = 0

        for chunk in older:
            if self._is_protected(chunk, options.preserve_critical, pinned):
                to_keep.append(chunk)
                preserved_critical += 1
            elif chunk.relevance_score >= threshold:
                if strategy == "aggressive":
                    to_summarize.append(chunk)
                else:
                    to_keep.append(chunk)
            elif chunk.relevance_score >= threshold * 0.5 and strategy != "aggressive":
                to_summarize.append(chunk)
            else:
                to_remove.append(chunk)

        outcome = _PassOutcome(
            strategy=strategy,
            tokens_before=tokens_before,
            tokens_after=tokens_before,
            kept=len(to_keep) + len(recent),
            preserved_critical=preserved_critical,
        )

        if not to_summarize and not to_remove:
            return outcome

        summary_chunks: list[ContextChunk] = []
        summarized_tokens = 0
        for chunk_type, group in _group_by_type(to_summarize):
            summary = self.extractive_summarize(" ".join(_strip_tag(c.content) for c in group), chunk_type)
            summary_tokens = estimate_tokens(summary)

            if summary_tokens >= count_chunk_tokens(group):
                # A summary that costs as much as its sources saves nothing
                logger.debug("Dropping %s summary: %d tokens is not smaller than its sources", chunk_type, summary_tokens)
                to_remove.extend(group)
                continue

            summary_chunks.append(
                ContextChunk(content=summary, tokens=summary_tokens, type=chunk_type)
            )
            outcome.summaries.append(summary)
            outcome.summarized += len(group)
            summarized_tokens += count_chunk_tokens(group)

        outcome.removed = len(to_remove)

        # Adjust the counter rather than re-summing chunks, so an externally
        # measured value from set_current_tokens() is not discarded
        freed = count_chunk_tokens(to_remove) + summarized_tokens
        tokens_after = max(0, tokens_before - freed + count_chunk_tokens(summary_chunks))

        # Rebuild: kept older -> summaries -> recent, so recency order is preserved
        self.monitor.replace_chunks(to_keep + summary_chunks + recent, tokens_after)

        outcome.tokens_after = self.monitor.current_tokens
        return outcome

    # ------------------------------------------------------------------
    # Extractive summarization
    # ------------------------------------------------------------------

    def extractive_summarize(self, content: str, chunk_type: str) -> str:
        """
        Summarize by keeping the highest-scoring sentences in source order.

        Args:
            content: Concatenated text of one chunk-type group
            chunk_type: Group type, used in the summary tag

        Returns:
            "[Summary - <type>]: ..." text
        """
        sentences = split_sentences(content, self.config.summary_min_sentence_chars)
        if not sentences:
            return f"[Summary - {chunk_type}]: {content[:FALLBACK_SUMMARY_CHARS]}"

        scores = [self.score_sentence(s) for s in sentences]
        # sorted() is stable, so equal scores keep source order
        ranked = sorted(range(len(sentences)), key=lambda i: -scores[i])
        top = sorted(ranked[:self.config.summary_max_sentences])

        return f"[Summary - {chunk_type}]: " + ". ".join(sentences[i] for i in top) + "."

    def score_sentence(self, sentence: str) -> float:
        """Score a sentence by length, obligation vocabulary and technical markers."""
        policy = self.config.scoring
        score = 0.0

        word_count = len(sentence.split())
        if policy.min_words <= word_count <= policy.max_words:
            score += policy.length_weight

        lowered = sentence.lower()
        for word in IMPORTANT_WORDS:
            if word in lowered:
                score += policy.keyword_weight

        for pattern in TECHNICAL_PATTERNS:
            if pattern.search(sentence):
                score += policy.technical_weight

        return score

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _threshold(self, strategy: CompactionStrategy) -> float:
        return self.config.relevance_thresholds[strategy]

    def _pinned_needles(self) -> list[str]:
        if self.critical_store is None:
            return []
        return [
            item.content.strip().lower()
            for item in self.critical_store.get_critical_context()
            if item.never_compress and item.content.strip()
        ]

    @staticmethod
    def _is_protected(chunk: ContextChunk, preserve_critical: bool, pinned: list[str]) -> bool:
        if preserve_critical and chunk.is_critical:
            return True
        if pinned:
            content = chunk.content.lower()
            return any(needle in content for needle in pinned)
        return False


def _group_by_type(chunks: list[ContextChunk]) -> list[tuple[str, list[ContextChunk]]]:
    groups: dict[str, list[ContextChunk]] = {}
    for chunk in chunks:
        groups.setdefault(chunk.type, []).append(chunk)
    return list(groups.items())


def _strip_tag(content: str) -> str:
    return SUMMARY_TAG.sub("", content)
