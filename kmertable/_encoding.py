"""
Canonical 2-bit k-mer encoding.

Each nucleotide maps to a 2-bit symbol (A=0, C=1, G=2, T=3) and a k-mer is
the base-4 number formed by its symbols, first base most significant. The
reverse complement is computed on the number itself: complement every
symbol (``s -> 3 - s``) and reverse their order. The canonical code of a
k-mer is the smaller of the two, so a k-mer and its reverse complement
always share one code.

Codes fit in a 64-bit word, which bounds k at 32. Array outputs use
``CODE_DTYPE`` (``np.uint64``); scalar codes are plain Python ints.
"""

import numpy as np

from ._errors import InvalidCharacterError, InvalidSizeError

__all__ = [
    "MAX_KSIZE",
    "CODE_DTYPE",
    "check_ksize",
    "encode",
    "decode",
    "reverse_complement",
    "canonicalize",
    "canonical_kmer",
    "reverse_complement_dna",
    "encode_windows",
    "first_invalid",
]

MAX_KSIZE = 32
CODE_DTYPE = np.uint64

_SYMBOLS = "ACGT"
_INVALID = 255

# ASCII byte -> 2-bit symbol, _INVALID for everything else
_STRICT_TABLE = np.full(256, _INVALID, dtype=np.uint8)
for _code, _base in enumerate(_SYMBOLS):
    _STRICT_TABLE[ord(_base)] = _code

_NOCASE_TABLE = _STRICT_TABLE.copy()
for _code, _base in enumerate(_SYMBOLS.lower()):
    _NOCASE_TABLE[ord(_base)] = _code

del _code, _base

_ALPHABET = np.frombuffer(_SYMBOLS.encode("ascii"), dtype=np.uint8)


def check_ksize(ksize, context="ksize"):
    """Validate a k-mer size and return it as an int.

    Raises
    ------
    InvalidSizeError
        If ksize is not an integer, is <= 0, or exceeds ``MAX_KSIZE``.
    """
    if isinstance(ksize, bool) or not isinstance(ksize, (int, np.integer)):
        raise InvalidSizeError(
            f"{context}: ksize must be an integer, got {ksize!r}"
        )
    if ksize <= 0:
        raise InvalidSizeError(f"{context}: ksize must be positive, got {ksize}")
    if ksize > MAX_KSIZE:
        raise InvalidSizeError(
            f"{context}: ksize > {MAX_KSIZE} does not fit in a 64-bit code, "
            f"got {ksize}"
        )
    return int(ksize)


def require_str(seq, context):
    if not isinstance(seq, str):
        raise TypeError(f"{context}: expected str, got {type(seq).__name__}")


def _check_code(code, ksize, context):
    if isinstance(code, bool) or not isinstance(code, (int, np.integer)):
        raise ValueError(f"{context}: code must be an integer, got {code!r}")
    code = int(code)
    if not 0 <= code < 1 << (2 * ksize):
        raise ValueError(
            f"{context}: code {code} out of range for ksize {ksize}"
        )
    return code


def _symbols(seq, ignore_case):
    # 'replace' turns every non-ASCII character into a single '?', so byte
    # offsets stay aligned with character positions.
    raw = np.frombuffer(seq.encode("ascii", errors="replace"), dtype=np.uint8)
    table = _NOCASE_TABLE if ignore_case else _STRICT_TABLE
    return table[raw]


def _raise_first_invalid(seq, symbols):
    bad = np.flatnonzero(symbols == _INVALID)
    if bad.size:
        position = int(bad[0])
        raise InvalidCharacterError(position, seq[position])


def first_invalid(seq, ignore_case=False):
    """Return the index of the first non-nucleotide character, or -1."""
    require_str(seq, "first_invalid")
    bad = np.flatnonzero(_symbols(seq, ignore_case) == _INVALID)
    return int(bad[0]) if bad.size else -1


def encode(kmer, ignore_case=False):
    """
    Encode a k-mer into its forward 2-bit code.

    Parameters
    ----------
    kmer : str
        Nucleotide string of length 1..32
    ignore_case : bool, optional
        Accept lowercase ``acgt`` as well (default: False, lowercase is
        an invalid character)

    Returns
    -------
    int
        Forward code in ``[0, 4**len(kmer))``

    Raises
    ------
    InvalidSizeError
        If the k-mer is empty or longer than 32 bases
    InvalidCharacterError
        At the first character outside A/C/G/T

    Examples
    --------
    >>> encode("ACGT")
    27
    """
    require_str(kmer, "encode")
    check_ksize(len(kmer), "encode")
    symbols = _symbols(kmer, ignore_case)
    _raise_first_invalid(kmer, symbols)

    code = 0
    for symbol in symbols.tolist():
        code = (code << 2) | symbol
    return code


def decode(code, ksize):
    """Decode a code back into an uppercase k-mer string."""
    ksize = check_ksize(ksize, "decode")
    code = _check_code(code, ksize, "decode")
    return "".join(
        _SYMBOLS[(code >> shift) & 3]
        for shift in range(2 * (ksize - 1), -1, -2)
    )


def reverse_complement(code, ksize):
    """Return the code of the reverse complement of the k-mer ``code``."""
    ksize = check_ksize(ksize, "reverse_complement")
    code = _check_code(code, ksize, "reverse_complement")
    rc = 0
    for _ in range(ksize):
        rc = (rc << 2) | (3 - (code & 3))
        code >>= 2
    return rc


def canonicalize(code, ksize):
    """Return ``min(code, reverse_complement(code, ksize))``."""
    rc = reverse_complement(code, ksize)
    return min(int(code), rc)


def canonical_kmer(kmer, ignore_case=False):
    """Return the canonical (numerically smaller) strand of ``kmer`` as text.

    >>> canonical_kmer("TTTT")
    'AAAA'
    """
    ksize = len(kmer)
    return decode(canonicalize(encode(kmer, ignore_case), ksize), ksize)


def reverse_complement_dna(seq, ignore_case=False):
    """
    Reverse complement a DNA string of any length.

    Output is always uppercase. Characters outside A/C/G/T (and a/c/g/t
    when ``ignore_case``) raise :class:`InvalidCharacterError`.
    """
    require_str(seq, "reverse_complement_dna")
    symbols = _symbols(seq, ignore_case)
    _raise_first_invalid(seq, symbols)
    return _ALPHABET[3 - symbols[::-1]].tobytes().decode("ascii")


def encode_windows(seq, ksize, ignore_case=False):
    """
    Canonical codes for every overlapping window of a sequence.

    Parameters
    ----------
    seq : str
        Nucleotide sequence
    ksize : int
        Window (k-mer) size, 1..32
    ignore_case : bool, optional
        Accept lowercase bases (default: False)

    Returns
    -------
    codes : np.ndarray[np.uint64]
        ``len(seq) - ksize + 1`` canonical codes (empty if the sequence is
        shorter than ksize). Windows containing an invalid character hold 0.
    valid : np.ndarray[bool]
        True for windows that cover no invalid character.
    """
    require_str(seq, "encode_windows")
    ksize = check_ksize(ksize, "encode_windows")
    symbols = _symbols(seq, ignore_case)
    n_windows = len(symbols) - ksize + 1
    if n_windows <= 0:
        return np.empty(0, dtype=CODE_DTYPE), np.empty(0, dtype=bool)

    bad = symbols == _INVALID
    sym = np.where(bad, 0, symbols).astype(CODE_DTYPE)
    comp = CODE_DTYPE(3) - sym

    two = CODE_DTYPE(2)
    fwd = np.zeros(n_windows, dtype=CODE_DTYPE)
    rev = np.zeros(n_windows, dtype=CODE_DTYPE)
    for j in range(ksize):
        fwd = (fwd << two) | sym[j:j + n_windows]
        rev |= comp[j:j + n_windows] << CODE_DTYPE(2 * j)
    codes = np.minimum(fwd, rev)

    # number of invalid positions before each index
    bad_before = np.concatenate(([0], np.cumsum(bad, dtype=np.int64)))
    valid = bad_before[ksize:] == bad_before[:n_windows]
    codes[~valid] = 0
    return codes, valid
