"""
Integration with ML frameworks (PyTorch and TensorFlow).

This example turns k-mer count tables into fixed-length feature vectors
(profiles indexed by canonical code) for sequence classification.
"""

import numpy as np
import kmertable

# Generate sample data
print("=" * 60)
print("Preparing sample genomic data")
print("=" * 60)

rng = np.random.default_rng(42)
num_samples = 100
seq_len = 500
k = 4

sequences = ["".join(rng.choice(list("ACGT"), size=seq_len)) for _ in range(num_samples)]

tables = []
for seq in sequences:
    table = kmertable.KmerCountTable(k)
    table.consume(seq)
    tables.append(table)

features = kmertable.stack_profiles(tables, normalize=True)
print(f"Generated {num_samples} sequences of length {seq_len}")
print(f"Feature matrix: {features.shape}")
print(f"Canonical k-mers: {kmertable.vocab_size(k):,} of {4**k:,} columns are used")
print()

# =============================================================================
# PyTorch Example
# =============================================================================

try:
    import torch
    import torch.nn as nn

    print("=" * 60)
    print("PyTorch Example: k-mer profile classifier")
    print("=" * 60)

    x = kmertable.batch_to_torch(tables, normalize=True)
    model = nn.Sequential(nn.Linear(4 ** k, 32), nn.ReLU(), nn.Linear(32, 2))
    logits = model(x)

    print(f"Model input shape: {x.shape}")
    print(f"Model output shape: {logits.shape}")
    print()

except ImportError:
    print("PyTorch not installed. Skipping PyTorch example.")
    print("Install with: pip install torch")
    print()

# =============================================================================
# TensorFlow Example
# =============================================================================

try:
    import tensorflow as tf

    print("=" * 60)
    print("TensorFlow Example: k-mer profile classifier")
    print("=" * 60)

    x = kmertable.batch_to_tensorflow(tables, normalize=True)
    model = tf.keras.Sequential([
        tf.keras.layers.Dense(32, activation='relu'),
        tf.keras.layers.Dense(2, activation='softmax', name='output')
    ])
    print(f"Model input shape: {x.shape}")
    print(f"Model output shape: {model(x).shape}")
    print()

except ImportError:
    print("TensorFlow not installed. Skipping TensorFlow example.")
    print("Install with: pip install tensorflow")
    print()

print("=" * 60)
print("Summary")
print("=" * 60)
print("- Canonical counting makes features strand-invariant")
print("- get_vocab(k) maps profile columns back to k-mers")
