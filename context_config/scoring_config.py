"""SentenceScoringPolicy model."""

from pydantic import BaseModel, Field, model_validator

from .defaults import (
    SENTENCE_KEYWORD_WEIGHT,
    SENTENCE_LENGTH_WEIGHT,
    SENTENCE_MAX_WORDS,
    SENTENCE_MIN_WORDS,
    SENTENCE_TECHNICAL_WEIGHT,
)


class SentenceScoringPolicy(BaseModel):
    """Weights used to rank sentences for extractive summaries."""

    model_config = {"extra": "forbid"}

    length_weight: float = Field(
        default=SENTENCE_LENGTH_WEIGHT, ge=0,
        description="Bonus for sentences inside the word-count sweet spot",
    )
    keyword_weight: float = Field(
        default=SENTENCE_KEYWORD_WEIGHT, ge=0,
        description="Bonus per decision/obligation word present",
    )
    technical_weight: float = Field(
        default=SENTENCE_TECHNICAL_WEIGHT, ge=0,
        description="Bonus per technical marker (CamelCase, call syntax, inline code)",
    )
    min_words: int = Field(default=SENTENCE_MIN_WORDS, ge=1)
    max_words: int = Field(default=SENTENCE_MAX_WORDS, ge=1)

    @model_validator(mode="after")
    def _check_word_range(self) -> "SentenceScoringPolicy":
        if self.min_words > self.max_words:
            raise ValueError("min_words must not exceed max_words")
        return self
