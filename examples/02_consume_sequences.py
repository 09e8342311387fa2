"""
Streaming examples.

This example demonstrates consume() on long sequences, the bad k-mer policy
and the table statistics.
"""

import numpy as np
import kmertable
import time

# Example 1: Consume a sequence
print("=" * 60)
print("Example 1: consume()")
print("=" * 60)

table = kmertable.KmerCountTable(ksize=4)
n = table.consume("GGGGGGGGGG")
print(f"Windows counted: {n}")
print(f"get('CCCC') = {table.get('CCCC')}")
print()

# Example 2: Bad characters
print("=" * 60)
print("Example 2: skip_bad_kmers")
print("=" * 60)

seq = "XXXCGGAGGAAGCAAGAACAAAATATTTTTTCATGGG"

table = kmertable.KmerCountTable(ksize=4)
n = table.consume(seq, skip_bad_kmers=True)
print(f"skip_bad_kmers=True:  {n} of {len(seq) - 3} windows counted")

table = kmertable.KmerCountTable(ksize=4)
try:
    table.consume(seq, skip_bad_kmers=False)
except kmertable.InvalidCharacterError as e:
    print(f"skip_bad_kmers=False: {e} (table has {len(table)} k-mers)")
print()

# Example 3: Large sequence
print("=" * 60)
print("Example 3: Throughput")
print("=" * 60)

rng = np.random.default_rng(42)
seq_len = 1_000_000
seq = "".join(rng.choice(list("ACGT"), size=seq_len))

table = kmertable.KmerCountTable(ksize=21)
start = time.perf_counter()
n = table.consume(seq)
elapsed = time.perf_counter() - start

print(f"Sequence length: {seq_len:,}")
print(f"K-mers counted:  {n:,}")
print(f"Distinct k-mers: {len(table):,}")
print(f"Time: {elapsed*1000:.1f} ms ({seq_len / elapsed / 1e6:.1f} Mbases/s)")
print()

# Example 4: Statistics
print("=" * 60)
print("Example 4: Histogram and filtering")
print("=" * 60)

table = kmertable.KmerCountTable(ksize=3)
table.consume("ACGTACGTTTTTAAAAACGT")
print(f"Histogram (count, n_kmers): {table.histo(zero=False)}")
print(f"min={table.min}, max={table.max}, sum={table.sum_counts}")
removed = table.mincut(2)
print(f"mincut(2) removed {removed} singletons, {len(table)} k-mers left")
print()
