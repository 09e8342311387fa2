"""Exception types raised by kmertable.

All errors derive from :class:`KmerError`, which is a :class:`ValueError`,
so callers that only care about "bad input" can catch ``ValueError``.
"""


class KmerError(ValueError):
    """Base class for all kmertable errors."""


class InvalidSizeError(KmerError):
    """A k-mer size is non-positive or does not fit in a 64-bit code."""


class LengthMismatchError(KmerError):
    """A k-mer passed to a point operation has the wrong length."""

    def __init__(self, expected, actual):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"kmer size does not match count table ksize "
            f"(expected {expected}, got {actual})"
        )


class InvalidCharacterError(KmerError):
    """A character outside the nucleotide alphabet was encountered.

    ``position`` is the 0-based index of the offending character within the
    string handed to the operation that raised it.
    """

    def __init__(self, position, char):
        self.position = position
        self.char = char
        super().__init__(f"invalid character {char!r} at position {position}")


class CountOverflowError(KmerError, OverflowError):
    """A count would no longer fit in an unsigned 64-bit integer."""


class KsizeMismatchError(KmerError):
    """Two tables with different k-mer sizes were combined."""
