"""Count table keyed by canonical k-mer code."""

import logging

import numpy as np

from . import _encoding
from ._encoding import CODE_DTYPE, check_ksize, require_str
from ._errors import (
    CountOverflowError,
    InvalidCharacterError,
    KsizeMismatchError,
    LengthMismatchError,
)

logger = logging.getLogger(__name__)

MAX_COUNT = (1 << 64) - 1

_MAX_PROFILE_ENTRIES = 5_000_000

# windows encoded per pass in consume; bounds peak memory on long sequences
_CHUNK_WINDOWS = 1 << 18


class KmerCountTable:
    """
    Exact counts of canonical k-mers.

    A k-mer and its reverse complement share one entry. Entries are created
    on first occurrence; a k-mer that was never counted reads as 0.

    Not thread-safe: callers that mutate one table from several threads must
    serialize access themselves.

    Parameters
    ----------
    ksize : int
        K-mer size, 1..32
    ignore_case : bool, optional
        Accept lowercase ``acgt`` in every operation (default: False, where
        lowercase letters are invalid characters like ``N``)

    Raises
    ------
    InvalidSizeError
        If ksize is not an integer in 1..32

    Examples
    --------
    >>> table = KmerCountTable(4)
    >>> table.consume("GGGGGGGGGG")
    7
    >>> table.get("CCCC")
    7
    """

    def __init__(self, ksize, ignore_case=False):
        from . import __version__

        self._ksize = check_ksize(ksize, "KmerCountTable")
        self._ignore_case = bool(ignore_case)
        self._counts = {}
        self._consumed = 0
        self._version = __version__

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    @property
    def ksize(self):
        return self._ksize

    @property
    def ignore_case(self):
        return self._ignore_case

    @property
    def version(self):
        """kmertable version the table was created with."""
        return self._version

    @property
    def consumed(self):
        """Total bases processed by ``count`` and successful ``consume`` calls."""
        return self._consumed

    @property
    def codes(self):
        """All canonical codes currently stored."""
        return list(self._counts)

    @property
    def sum_counts(self):
        return sum(self._counts.values())

    @property
    def min(self):
        """Smallest stored count, 0 for an empty table."""
        return min(self._counts.values(), default=0)

    @property
    def max(self):
        """Largest stored count, 0 for an empty table."""
        return max(self._counts.values(), default=0)

    # ------------------------------------------------------------------
    # Point operations
    # ------------------------------------------------------------------

    def code_kmer(self, kmer):
        """Return the canonical code of ``kmer`` after table validation.

        Raises
        ------
        LengthMismatchError
            If ``len(kmer) != ksize``
        InvalidCharacterError
            If ``kmer`` contains a non-nucleotide character
        """
        require_str(kmer, "KmerCountTable")
        if len(kmer) != self._ksize:
            raise LengthMismatchError(self._ksize, len(kmer))
        code = _encoding.encode(kmer, self._ignore_case)
        return _encoding.canonicalize(code, self._ksize)

    def _canonical_code(self, code):
        return _encoding.canonicalize(code, self._ksize)

    def _increment(self, code, n):
        total = self._counts.get(code, 0) + n
        if total > MAX_COUNT:
            raise CountOverflowError(
                f"count for code {code} would exceed {MAX_COUNT}"
            )
        self._counts[code] = total
        return total

    def count_code(self, code):
        """Increment the entry for ``code`` (canonicalized first)."""
        return self._increment(self._canonical_code(code), 1)

    def get_code(self, code):
        return self._counts.get(self._canonical_code(code), 0)

    def get_code_array(self, codes):
        """Counts for an array of codes, 0 where absent.

        Returns
        -------
        np.ndarray[np.uint64]
        """
        return np.array([self.get_code(code) for code in codes], dtype=CODE_DTYPE)

    def count(self, kmer):
        """
        Count one k-mer and return its new count.

        The k-mer is folded onto its canonical strand, so ``count("AAAA")``
        and ``count("TTTT")`` update the same entry.
        """
        code = self.code_kmer(kmer)
        count = self._increment(code, 1)
        self._consumed += len(kmer)
        return count

    def get(self, kmer):
        """Return the count of ``kmer`` (or its reverse complement), 0 if unseen."""
        return self._counts.get(self.code_kmer(kmer), 0)

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def _add_codes(self, codes):
        if not len(codes):
            return
        unique, counts = np.unique(codes, return_counts=True)
        for code, n in zip(unique.tolist(), counts.tolist()):
            self._increment(code, n)

    def consume(self, sequence, skip_bad_kmers=True):
        """
        Count every overlapping k-mer of a sequence.

        Parameters
        ----------
        sequence : str
            Nucleotide sequence of any length
        skip_bad_kmers : bool, optional
            If True (default), windows that cover an invalid character are
            skipped and scanning continues with the first window past it.
            If False, windows before the first one covering an invalid
            character are counted, then InvalidCharacterError is raised.

        Returns
        -------
        int
            Number of windows counted by this call

        Raises
        ------
        InvalidCharacterError
            Only when ``skip_bad_kmers`` is False. ``position`` is the index
            of the first invalid character within ``sequence``. Counts from
            the windows before it stay in the table.
        """
        require_str(sequence, "consume")
        k = self._ksize
        n_windows = len(sequence) - k + 1
        counted = 0

        # chunks overlap by k - 1 bases so every window is seen exactly once
        for start in range(0, max(n_windows, 0), _CHUNK_WINDOWS):
            chunk = sequence[start:start + _CHUNK_WINDOWS + k - 1]
            codes, valid = _encoding.encode_windows(chunk, k, self._ignore_case)

            if not valid.all():
                if not skip_bad_kmers:
                    # earlier chunks were clean, so this is the first bad base
                    offset = _encoding.first_invalid(chunk, self._ignore_case)
                    self._add_codes(codes[:max(0, offset - k + 1)])
                    position = start + offset
                    raise InvalidCharacterError(position, sequence[position])
                codes = codes[valid]

            self._add_codes(codes)
            counted += len(codes)

        self._consumed += len(sequence)
        return counted

    def kmers_and_codes(self, sequence, skip_bad_kmers=False):
        """
        List ``(canonical_kmer, code)`` for every window without counting.

        Skipped windows appear as ``("", None)`` so the list stays aligned
        with window positions.
        """
        require_str(sequence, "kmers_and_codes")
        codes, valid = _encoding.encode_windows(
            sequence, self._ksize, self._ignore_case
        )
        if not skip_bad_kmers and not valid.all():
            position = _encoding.first_invalid(sequence, self._ignore_case)
            raise InvalidCharacterError(position, sequence[position])

        result = []
        for code, ok in zip(codes.tolist(), valid.tolist()):
            if ok:
                result.append((_encoding.decode(code, self._ksize), code))
            else:
                result.append(("", None))
        return result

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def drop(self, kmer):
        """Remove a k-mer (and its reverse complement). Absent k-mers are ignored."""
        self._drop(self.code_kmer(kmer))

    def drop_code(self, code):
        self._drop(self._canonical_code(code))

    def _drop(self, code):
        if self._counts.pop(code, None) is not None:
            logger.debug("code %d removed from table", code)
        else:
            logger.debug("code %d not found in table", code)

    def mincut(self, min_count):
        """Remove all k-mers with counts below ``min_count``; return how many."""
        to_remove = [code for code, count in self._counts.items() if count < min_count]
        for code in to_remove:
            del self._counts[code]
        logger.debug("mincut(%d) removed %d k-mers", min_count, len(to_remove))
        return len(to_remove)

    def maxcut(self, max_count):
        """Remove all k-mers with counts above ``max_count``; return how many."""
        to_remove = [code for code, count in self._counts.items() if count > max_count]
        for code in to_remove:
            del self._counts[code]
        logger.debug("maxcut(%d) removed %d k-mers", max_count, len(to_remove))
        return len(to_remove)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def histo(self, zero=True):
        """
        Frequency histogram of counts.

        Parameters
        ----------
        zero : bool, optional
            If True (default), include every count from 0 to ``max``, even
            counts no k-mer has. If False, only observed counts.

        Returns
        -------
        list of (count, n_kmers) tuples, sorted by count

        Raises
        ------
        ValueError
            If ``zero`` is True and ``max + 1`` exceeds 5,000,000 entries;
            use ``zero=False`` for tables with very large counts
        """
        if not self._counts:
            return [(0, 0)] if zero else []

        largest = self.max
        if zero and largest >= _MAX_PROFILE_ENTRIES:
            raise ValueError(
                f"histo: too large ({largest + 1:,} entries) for max count "
                f"{largest}. Maximum is {_MAX_PROFILE_ENTRIES:,}; "
                f"use zero=False."
            )
        values = np.fromiter(self._counts.values(), dtype=CODE_DTYPE,
                             count=len(self._counts))
        if zero:
            freq = np.bincount(values.astype(np.int64))
            return list(enumerate(freq.tolist()))
        unique, n_kmers = np.unique(values, return_counts=True)
        return list(zip(unique.tolist(), n_kmers.tolist()))

    def dump(self, sortcounts=False, sortkeys=False):
        """
        List ``(code, count)`` pairs, optionally sorted.

        Parameters
        ----------
        sortcounts : bool, optional
            Sort by count, ties broken by code
        sortkeys : bool, optional
            Sort by code

        Raises
        ------
        ValueError
            If both ``sortcounts`` and ``sortkeys`` are set
        """
        if sortcounts and sortkeys:
            raise ValueError("Cannot sort by both counts and keys at the same time.")
        entries = list(self._counts.items())
        if sortcounts:
            entries.sort(key=lambda item: (item[1], item[0]))
        elif sortkeys:
            entries.sort()
        return entries

    def dump_kmers(self, sortcounts=False, sortkeys=False):
        """Like :meth:`dump`, with canonical k-mer text instead of codes."""
        return [
            (_encoding.decode(code, self._ksize), count)
            for code, count in self.dump(sortcounts=sortcounts, sortkeys=sortkeys)
        ]

    def profile(self, normalize=False):
        """
        Dense count vector indexed by canonical code.

        Parameters
        ----------
        normalize : bool, optional
            Return frequencies summing to 1 instead of raw counts

        Returns
        -------
        np.ndarray
            Length ``4**ksize``; uint64 counts, or float64 when ``normalize``

        Raises
        ------
        ValueError
            If ``4**ksize`` exceeds 5,000,000 entries
        """
        size = 4 ** self._ksize
        if size > _MAX_PROFILE_ENTRIES:
            raise ValueError(
                f"profile: too large ({size:,} entries) for ksize="
                f"{self._ksize}. Maximum is {_MAX_PROFILE_ENTRIES:,}."
            )
        profile = np.zeros(size, dtype=CODE_DTYPE)
        if self._counts:
            index = np.fromiter(self._counts.keys(), dtype=np.int64,
                                count=len(self._counts))
            profile[index] = np.fromiter(self._counts.values(), dtype=CODE_DTYPE,
                                         count=len(self._counts))
        if normalize:
            total = profile.sum()
            if total == 0:
                return profile.astype(np.float64)
            return profile / total
        return profile

    def cosine(self, other):
        """Cosine similarity between the count vectors of two tables."""
        self._check_compatible(other, "cosine")
        if not self._counts or not other._counts:
            return 0.0
        codes = list(set(self._counts) | set(other._counts))
        a = np.array([self._counts.get(code, 0) for code in codes], dtype=np.float64)
        b = np.array([other._counts.get(code, 0) for code in codes], dtype=np.float64)
        return float(np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b)))

    # ------------------------------------------------------------------
    # Combining tables
    # ------------------------------------------------------------------

    def _check_compatible(self, other, context):
        if not isinstance(other, KmerCountTable):
            raise TypeError(
                f"{context}: expected KmerCountTable, got {type(other).__name__}"
            )
        if other._ksize != self._ksize:
            raise KsizeMismatchError(
                f"{context}: ksize mismatch ({self._ksize} != {other._ksize})"
            )

    def add(self, other):
        """
        Add the counts of ``other`` into this table.

        Returns
        -------
        counts_added : int
            Sum of the counts taken from ``other``
        new_keys : int
            Number of codes that were not yet in this table
        """
        self._check_compatible(other, "add")
        counts_added = 0
        new_keys = 0
        for code, count in other._counts.items():
            if code not in self._counts:
                new_keys += 1
            self._increment(code, count)
            counts_added += count
        self._consumed += other._consumed
        logger.debug("add: %d counts merged, %d new k-mers", counts_added, new_keys)
        return counts_added, new_keys

    def union(self, other):
        self._check_compatible(other, "union")
        return set(self._counts) | set(other._counts)

    def intersection(self, other):
        self._check_compatible(other, "intersection")
        return set(self._counts) & set(other._counts)

    def difference(self, other):
        self._check_compatible(other, "difference")
        return set(self._counts) - set(other._counts)

    def symmetric_difference(self, other):
        self._check_compatible(other, "symmetric_difference")
        return set(self._counts) ^ set(other._counts)

    def __or__(self, other):
        if not isinstance(other, KmerCountTable):
            return NotImplemented
        return self.union(other)

    def __and__(self, other):
        if not isinstance(other, KmerCountTable):
            return NotImplemented
        return self.intersection(other)

    def __sub__(self, other):
        if not isinstance(other, KmerCountTable):
            return NotImplemented
        return self.difference(other)

    def __xor__(self, other):
        if not isinstance(other, KmerCountTable):
            return NotImplemented
        return self.symmetric_difference(other)

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __len__(self):
        return len(self._counts)

    def __iter__(self):
        # iterate over a snapshot of the entries
        return iter(list(self._counts.items()))

    def __contains__(self, kmer):
        return self.code_kmer(kmer) in self._counts

    def __getitem__(self, kmer):
        return self.get(kmer)

    def __setitem__(self, kmer, count):
        if isinstance(count, bool) or not isinstance(count, (int, np.integer)):
            raise TypeError(f"count must be an integer, got {count!r}")
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        if count > MAX_COUNT:
            raise CountOverflowError(f"count {count} exceeds {MAX_COUNT}")
        self._counts[self.code_kmer(kmer)] = int(count)

    def __repr__(self):
        return f"KmerCountTable(ksize={self._ksize}, kmers={len(self._counts)})"
