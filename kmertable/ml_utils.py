"""
ML framework integration utilities for kmertable.

Turns k-mer count profiles (dense vectors indexed by canonical code) into
PyTorch and TensorFlow tensors, one table at a time or stacked as a batch.
"""

import numpy as np
from typing import List, Sequence, Union

from ._table import KmerCountTable

# Check for PyTorch availability
try:
    import torch
    TORCH_AVAILABLE = True
except ImportError:
    TORCH_AVAILABLE = False
    torch = None  # type: ignore

# Check for TensorFlow availability
try:
    import tensorflow as tf
    TF_AVAILABLE = True
except ImportError:
    TF_AVAILABLE = False
    tf = None  # type: ignore


ProfileLike = Union[KmerCountTable, np.ndarray]


def _as_profile(item: ProfileLike, normalize: bool) -> np.ndarray:
    if isinstance(item, KmerCountTable):
        return item.profile(normalize=normalize)
    profile = np.asarray(item)
    if profile.ndim != 1:
        raise ValueError(f"profile must be 1-D, got shape {profile.shape}")
    if normalize:
        total = profile.sum()
        return profile / total if total else profile.astype(np.float64)
    return profile


def stack_profiles(
    items: Sequence[ProfileLike],
    normalize: bool = False
) -> np.ndarray:
    """
    Stack count tables or profile vectors into one 2-D float64 array.

    Parameters
    ----------
    items : Sequence[KmerCountTable or np.ndarray]
        Tables (converted with ``profile()``) or 1-D profile vectors
    normalize : bool, optional
        Scale every row to sum to 1 (default: False)

    Returns
    -------
    np.ndarray
        Shape [n_items, 4**ksize]; shape (0, 0) for an empty input

    Raises
    ------
    ValueError
        If the profiles have different lengths (different ksize)

    Examples
    --------
    >>> import kmertable
    >>> tables = [kmertable.KmerCountTable(3) for _ in range(2)]
    >>> tables[0].consume("ACGTACGT")
    6
    >>> kmertable.stack_profiles(tables).shape
    (2, 64)
    """
    if len(items) == 0:
        return np.empty((0, 0), dtype=np.float64)

    profiles = [_as_profile(item, normalize) for item in items]
    lengths = {len(p) for p in profiles}
    if len(lengths) != 1:
        raise ValueError(
            f"stack_profiles: profiles differ in length {sorted(lengths)}; "
            f"all tables must share one ksize"
        )
    return np.stack([p.astype(np.float64) for p in profiles])


# ============================================================================
# PyTorch conversion utilities
# ============================================================================

def to_torch(
    profile: ProfileLike,
    dtype = None,
    device: Union[str, object] = 'cpu'
):
    """
    Convert a count profile (or a table) to a PyTorch tensor.

    Uses zero-copy conversion (torch.from_numpy) when device='cpu' and the
    profile is already float64 with dtype=torch.float64, otherwise copies.

    Parameters
    ----------
    profile : np.ndarray or KmerCountTable
        1-D profile from ``KmerCountTable.profile()``, or the table itself
    dtype : torch.dtype, optional
        PyTorch dtype (default: torch.float32)
    device : str or torch.device, optional
        Target device: 'cpu', 'cuda', or torch.device (default: 'cpu')

    Returns
    -------
    torch.Tensor
        Shape [4**ksize]

    Raises
    ------
    ImportError
        If PyTorch is not installed
    """
    if not TORCH_AVAILABLE:
        raise ImportError(
            "PyTorch not installed. Install with: pip install torch"
        )

    if dtype is None:
        dtype = torch.float32

    profile = _as_profile(profile, normalize=False)
    if device == 'cpu' and dtype == torch.float64 and profile.dtype == np.float64:
        return torch.from_numpy(profile)
    # torch has limited uint64 support, go through float64
    return torch.tensor(profile.astype(np.float64), dtype=dtype, device=device)


def batch_to_torch(
    items: List[ProfileLike],
    normalize: bool = False,
    dtype = None,
    device: Union[str, object] = 'cpu'
):
    """
    Convert a batch of tables/profiles to a [batch_size, 4**ksize] tensor.

    Parameters
    ----------
    items : List[KmerCountTable or np.ndarray]
        Tables or profiles sharing one ksize
    normalize : bool, optional
        Scale each row to sum to 1 (default: False)
    dtype : torch.dtype, optional
        PyTorch dtype (default: torch.float32)
    device : str or torch.device, optional
        Target device (default: 'cpu')

    Raises
    ------
    ImportError
        If PyTorch is not installed
    """
    if not TORCH_AVAILABLE:
        raise ImportError("PyTorch not installed. Install with: pip install torch")

    if dtype is None:
        dtype = torch.float32

    stacked = stack_profiles(items, normalize=normalize)
    return torch.tensor(stacked, dtype=dtype, device=device)


# ============================================================================
# TensorFlow conversion utilities
# ============================================================================

def to_tensorflow(
    profile: ProfileLike,
    dtype = None
):
    """
    Convert a count profile (or a table) to a TensorFlow tensor.

    Parameters
    ----------
    profile : np.ndarray or KmerCountTable
        1-D profile, or the table itself
    dtype : tf.DType, optional
        TensorFlow dtype (default: tf.float32)

    Raises
    ------
    ImportError
        If TensorFlow is not installed
    """
    if not TF_AVAILABLE:
        raise ImportError(
            "TensorFlow not installed. Install with: pip install tensorflow"
        )

    if dtype is None:
        dtype = tf.float32

    profile = _as_profile(profile, normalize=False)
    return tf.cast(tf.convert_to_tensor(profile.astype(np.float64)), dtype)


def batch_to_tensorflow(
    items: List[ProfileLike],
    normalize: bool = False,
    dtype = None
):
    """
    Convert a batch of tables/profiles to a [batch_size, 4**ksize] tensor.

    Raises
    ------
    ImportError
        If TensorFlow is not installed
    """
    if not TF_AVAILABLE:
        raise ImportError("TensorFlow not installed. Install with: pip install tensorflow")

    if dtype is None:
        dtype = tf.float32

    stacked = stack_profiles(items, normalize=normalize)
    return tf.cast(tf.convert_to_tensor(stacked), dtype)
