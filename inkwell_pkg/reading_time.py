"""
Reading-time estimation for post bodies.
"""

import math

DEFAULT_WORDS_PER_MINUTE = 350


def count_words(text: str) -> int:
    """Count whitespace-delimited words."""
    return len(text.split())


def estimate_reading_time(body: str, words_per_minute: int = DEFAULT_WORDS_PER_MINUTE) -> int:
    """
    Estimate how long a body takes to read.

    Args:
        body: Raw markdown body
        words_per_minute: Reading speed, taken from site configuration

    Returns:
        Whole minutes, rounded up; at least 1 for any non-empty body
    """
    if words_per_minute <= 0:
        raise ValueError(f"words_per_minute must be positive, got {words_per_minute}")
    if not body:
        return 0
    return max(1, math.ceil(count_words(body) / words_per_minute))
