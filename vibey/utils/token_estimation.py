#!/usr/bin/env python3
"""
Token Estimation for the Vibey Agent

Single source of truth for "how big is this text". Every component that
reasons about size (context window, budget checks, truncation) goes through
a TokenEstimator so the numbers agree with each other.
"""

import logging
import math
from typing import Callable, Optional

from vibey.exceptions.context import TokenEstimationError

CHARS_PER_TOKEN = 4

TokenCounter = Callable[[str], int]


class TokenEstimator:
    """
    Approximate token counter.

    The default policy is ``ceil(len(text) / 4)``: deterministic, monotonic
    in text length and free of model-specific tokenizers. An exact counter
    (for example a tokenizer's ``len(encode(text))``) can be plugged in.
    """

    def __init__(self, counter: Optional[TokenCounter] = None, name: str = "chars/4"):
        self._counter = counter
        self.name = name if counter is None else getattr(counter, "__name__", name)
        self.logger = logging.getLogger(__name__)

    def estimate(self, text: str) -> int:
        """
        Estimate token count for the given text.

        Raises:
            TokenEstimationError: If a pluggable counter fails.
        """
        if not text:
            return 0

        if self._counter is None:
            return math.ceil(len(text) / CHARS_PER_TOKEN)

        try:
            count = int(self._counter(text))
        except Exception as e:
            raise TokenEstimationError(
                f"Token counter '{self.name}' failed: {e}",
                estimator_name=self.name,
                original_error=e,
            ) from e
        return max(0, count)

    def tokens_to_chars(self, tokens: int) -> int:
        """Approximate character length for a token count."""
        return max(0, tokens) * CHARS_PER_TOKEN

    __call__ = estimate


_default_estimator = TokenEstimator()


def estimate_tokens(text: str) -> int:
    """Estimate tokens with the default chars/4 heuristic."""
    return _default_estimator.estimate(text)
