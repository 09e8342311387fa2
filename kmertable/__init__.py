"""
kmertable: exact canonical k-mer counting for DNA sequences.

K-mers are stored under a 2-bit canonical code, so a k-mer and its reverse
complement share one count. Sequences are scanned with vectorized NumPy
window encoding.
"""

import itertools

import numpy as np

from ._errors import (
    KmerError,
    InvalidSizeError,
    LengthMismatchError,
    InvalidCharacterError,
    CountOverflowError,
    KsizeMismatchError,
)

from ._encoding import (
    MAX_KSIZE,
    CODE_DTYPE,
    check_ksize,
    encode,
    decode,
    reverse_complement,
    canonicalize,
    canonical_kmer,
    reverse_complement_dna,
    encode_windows,
    first_invalid,
)

from ._table import KmerCountTable, MAX_COUNT

# ML utilities (optional dependencies)
from .ml_utils import (
    stack_profiles,
    to_torch,
    batch_to_torch,
    to_tensorflow,
    batch_to_tensorflow,
)

__all__ = [
    # Errors
    "KmerError",
    "InvalidSizeError",
    "LengthMismatchError",
    "InvalidCharacterError",
    "CountOverflowError",
    "KsizeMismatchError",
    # Encoding
    "MAX_KSIZE",
    "CODE_DTYPE",
    "encode",
    "decode",
    "reverse_complement",
    "canonicalize",
    "canonical_kmer",
    "reverse_complement_dna",
    "encode_windows",
    "first_invalid",
    # Counting
    "KmerCountTable",
    "MAX_COUNT",
    # Vocabulary utilities
    "vocab_size",
    "get_vocab",
    # ML utilities
    "stack_profiles",
    "to_torch",
    "batch_to_torch",
    "to_tensorflow",
    "batch_to_tensorflow",
]

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Vocabulary utilities
# ---------------------------------------------------------------------------

_MAX_VOCAB_ENTRIES = 5_000_000


def vocab_size(k, canonical=True):
    """Return the number of distinct k-mers of length *k*.

    Parameters
    ----------
    k : int
        k-mer length.
    canonical : bool
        Count a k-mer and its reverse complement once (default: True).
        Even k has ``4**(k/2)`` reverse-complement palindromes, which are
        their own canonical form.

    Returns
    -------
    int
    """
    k = check_ksize(k, "vocab_size")
    total = 4 ** k
    if not canonical:
        return total
    palindromes = 4 ** (k // 2) if k % 2 == 0 else 0
    return (total + palindromes) // 2


def get_vocab(k):
    """Return a mapping from canonical k-mer strings to their codes.

    Only canonical k-mers are listed, ordered by code. Codes are the same
    values a :class:`KmerCountTable` uses as keys and as ``profile()``
    indices.

    Parameters
    ----------
    k : int
        k-mer length.

    Returns
    -------
    dict[str, int]
    """
    k = check_ksize(k, "get_vocab")
    total = 4 ** k
    if total > _MAX_VOCAB_ENTRIES:
        raise ValueError(
            f"Vocabulary too large ({total:,} entries) for k={k}. "
            f"Maximum is {_MAX_VOCAB_ENTRIES:,}."
        )

    # reverse complement of every code at once; product() yields k-mers in code order
    two, three = CODE_DTYPE(2), CODE_DTYPE(3)
    codes = np.arange(total, dtype=CODE_DTYPE)
    rest = codes.copy()
    rc = np.zeros_like(codes)
    for _ in range(k):
        rc = (rc << two) | (three - (rest & three))
        rest >>= two
    canonical = (codes <= rc).tolist()

    kmers = map("".join, itertools.product("ACGT", repeat=k))
    return {
        kmer: code
        for code, (kmer, keep) in enumerate(zip(kmers, canonical))
        if keep
    }
