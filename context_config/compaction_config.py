"""CompactionConfig model."""

from pydantic import BaseModel, Field, field_validator

from .defaults import (
    AUTO_COMPACT_PRESERVE_RECENT,
    DEFAULT_PRESERVE_RECENT,
    RELEVANCE_THRESHOLDS,
    SUMMARY_COMPRESSION_RATIO,
    SUMMARY_MAX_SENTENCES,
    SUMMARY_MIN_SENTENCE_CHARS,
)
from .scoring_config import SentenceScoringPolicy


class CompactionConfig(BaseModel):
    """Compaction tuning."""

    model_config = {"extra": "forbid"}

    preserve_recent: int = Field(default=DEFAULT_PRESERVE_RECENT, ge=0)
    auto_preserve_recent: int = Field(default=AUTO_COMPACT_PRESERVE_RECENT, ge=0)
    compression_ratio: float = Field(
        default=SUMMARY_COMPRESSION_RATIO, ge=0, le=1,
        description="Fraction of summarizable tokens a dry run assumes are reclaimed",
    )
    relevance_thresholds: dict[str, float] = Field(
        default_factory=lambda: dict(RELEVANCE_THRESHOLDS),
        description="Relevance cut-off per strategy",
    )
    summary_max_sentences: int = Field(default=SUMMARY_MAX_SENTENCES, ge=1)
    summary_min_sentence_chars: int = Field(default=SUMMARY_MIN_SENTENCE_CHARS, ge=0)
    relevance_decay: bool = Field(
        default=True,
        description="Age chunk relevance by position each time a chunk is ingested",
    )
    scoring: SentenceScoringPolicy = Field(default_factory=SentenceScoringPolicy)

    @field_validator("relevance_thresholds")
    @classmethod
    def _check_thresholds(cls, value: dict[str, float]) -> dict[str, float]:
        missing = set(RELEVANCE_THRESHOLDS) - set(value)
        if missing:
            raise ValueError(f"relevance_thresholds missing strategies: {sorted(missing)}")
        for strategy, threshold in value.items():
            if not 0 <= threshold <= 1:
                raise ValueError(f"relevance threshold for {strategy} must be within [0, 1]")
        return value
