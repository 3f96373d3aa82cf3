"""
Token estimation.

Uses a fixed characters-per-token heuristic. The estimate only has to be
deterministic and monotonic in text length: chunk sizes are cached at
insertion and compaction compares them against each other.
"""

import math

from context_config.defaults import CHARS_PER_TOKEN


def estimate_tokens(text: str, chars_per_token: int = CHARS_PER_TOKEN) -> int:
    """
    Estimate token count for text.

    Args:
        text: Text to estimate tokens for
        chars_per_token: Characters assumed per token

    Returns:
        Estimated token count (0 for empty text)
    """
    if not text:
        return 0
    return math.ceil(len(text) / chars_per_token)


def count_chunk_tokens(chunks) -> int:
    """Sum the cached token counts of a chunk sequence."""
    return sum(chunk.tokens for chunk in chunks)
