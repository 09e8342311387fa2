"""
Basic usage examples for kmertable.

This example demonstrates encoding, canonical k-mers and point counting.
"""

import kmertable

# Example 1: Encoding
print("=" * 60)
print("Example 1: 2-bit encoding")
print("=" * 60)

kmer = "GATTACA"
code = kmertable.encode(kmer)
rc = kmertable.reverse_complement(code, len(kmer))

print(f"K-mer:          {kmer}")
print(f"Forward code:   {code}")
print(f"Rev-comp:       {kmertable.decode(rc, len(kmer))} ({rc})")
print(f"Canonical:      {kmertable.canonical_kmer(kmer)} ({kmertable.canonicalize(code, len(kmer))})")
print()

# Example 2: Counting both strands
print("=" * 60)
print("Example 2: Point counting")
print("=" * 60)

table = kmertable.KmerCountTable(ksize=4)
table.count("AAAA")
table.count("TTTT")
table.count("ACGT")

print(f"get('AAAA') = {table.get('AAAA')}  (AAAA and TTTT share one entry)")
print(f"get('ACGT') = {table.get('ACGT')}")
print(f"get('CCCC') = {table.get('CCCC')}  (never counted)")
print(f"Distinct k-mers: {len(table)}")
print(f"By count:        {table.dump_kmers(sortcounts=True)}")
print()

# Example 3: Invalid input
print("=" * 60)
print("Example 3: Errors")
print("=" * 60)

for bad in ["ACG", "ACNT", "acgt"]:
    try:
        table.count(bad)
    except kmertable.KmerError as e:
        print(f"count({bad!r}) -> {type(e).__name__}: {e}")

relaxed = kmertable.KmerCountTable(ksize=4, ignore_case=True)
print(f"With ignore_case=True: count('acgt') = {relaxed.count('acgt')}")
print()
