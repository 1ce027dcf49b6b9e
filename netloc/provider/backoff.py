"""Exponential back-off delays for retrying failed scans."""


class ExponentialBackOff:
    """
    Exponential back-off:

        delay_k = min(initial_s * exponent**k, maximum_s)

    ``current`` starts at ``initial_s``; the caller decides when to
    ``advance()`` it and when to ``reset()`` it.

    Example:
        >>> backoff = ExponentialBackOff()
        >>> backoff.advance()
        >>> backoff.current
        1.5
    """

    def __init__(self, initial_s: float = 1.0, exponent: float = 1.5, maximum_s: float = 30.0):
        if not initial_s > 0:
            raise ValueError(f"initial_s must be positive, got {initial_s}")
        if not exponent >= 1.0:
            raise ValueError(f"exponent must be >= 1, got {exponent}")
        if maximum_s < initial_s:
            raise ValueError(f"maximum_s ({maximum_s}) must be >= initial_s ({initial_s})")
        self.initial_s = initial_s
        self.exponent = exponent
        self.maximum_s = maximum_s
        self._advance_count = 0
        self._current = initial_s

    @property
    def current(self) -> float:
        """Current delay in seconds."""
        return self._current

    def advance(self) -> None:
        if self._current < self.maximum_s:
            self._advance_count += 1
            self._current = min(
                self.initial_s * self.exponent ** self._advance_count, self.maximum_s
            )

    def reset(self) -> None:
        self._advance_count = 0
        self._current = self.initial_s
