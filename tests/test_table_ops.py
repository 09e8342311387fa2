"""Tests for KmerCountTable maintenance, statistics and set operations."""

from math import isclose

import numpy as np
import pytest
import kmertable
from kmertable import KmerCountTable

# scipy is only used as a reference implementation
try:
    from scipy.spatial.distance import cosine as scipy_cosine
    SCIPY_AVAILABLE = True
except ImportError:
    SCIPY_AVAILABLE = False


def create_sample_kmer_table(ksize, kmers):
    table = KmerCountTable(ksize)
    for kmer in kmers:
        table.count(kmer)
    return table


@pytest.fixture
def kmer_table():
    """Table with AAAA/TTTT = 2, ATAT = 1, CCCC/GGGG = 3."""
    return create_sample_kmer_table(
        4, ["AAAA", "CCCC", "ATAT", "GGGG", "TTTT", "CCCC"]
    )


class TestRemoval:
    """Tests for drop, mincut and maxcut."""

    def test_drop(self, kmer_table):
        """Test dropping by k-mer removes both strands."""
        kmer_table.drop("GGGG")
        assert kmer_table.get("GGGG") == 0
        assert kmer_table.get("CCCC") == 0

        kmer_table.drop("AAAA")
        assert kmer_table.get("TTTT") == 0
        assert len(kmer_table) == 1

    def test_drop_missing(self, kmer_table):
        """Test dropping an absent k-mer is not an error."""
        kmer_table.drop("GGGA")
        assert len(kmer_table) == 3

    def test_drop_code(self, kmer_table):
        """Test dropping by code, either strand's code works."""
        kmer_table.drop_code(kmertable.encode("GGGG"))
        assert kmer_table.get("CCCC") == 0
        kmer_table.drop_code(0)
        assert kmer_table.get("AAAA") == 0

    def test_mincut(self, kmer_table):
        """Test mincut removes counts strictly below the threshold."""
        assert kmer_table.mincut(3) == 2
        assert kmer_table.get("GGGG") == 3
        assert kmer_table.mincut(10) == 1
        assert len(kmer_table.codes) == 0

    def test_maxcut(self, kmer_table):
        """Test maxcut removes counts strictly above the threshold."""
        assert kmer_table.maxcut(2) == 1
        assert kmer_table.get("GGGG") == 0
        assert kmer_table.get("AAAA") == 2
        assert kmer_table.maxcut(10) == 0
        assert kmer_table.maxcut(0) == 2
        assert len(kmer_table) == 0


class TestStatistics:
    """Tests for histo, min, max and sums."""

    def test_empty_table(self):
        """Test statistics of an empty table."""
        table = KmerCountTable(4)
        assert table.min == 0
        assert table.max == 0
        assert table.sum_counts == 0
        assert table.histo(zero=False) == []
        assert table.histo(zero=True) == [(0, 0)]

    def test_min_max(self):
        """Test min and max after counting."""
        table = KmerCountTable(4)
        table.count("AAAA")
        table.count("TTTT")
        table.consume("CCCCCC")
        assert table.min == 2
        assert table.max == 3
        assert table.sum_counts == 5

    def test_histo_observed_only(self):
        """Test histo(zero=False) lists observed counts only."""
        table = create_sample_kmer_table(4, ["AAAA", "AAAA", "TTTT", "CCCC"])
        assert table.histo(zero=False) == [(1, 1), (3, 1)]

    def test_histo_with_zeros(self):
        """Test histo(zero=True) fills every count up to max."""
        table = create_sample_kmer_table(4, ["AAAA", "AAAA", "TTTT", "CCCC"])
        assert table.histo(zero=True) == [(0, 0), (1, 1), (2, 0), (3, 1)]

    def test_histo_large_count(self):
        """Test histo with one k-mer counted 5 times."""
        table = create_sample_kmer_table(4, ["AAAA"] * 5)
        assert table.histo() == [(0, 0), (1, 0), (2, 0), (3, 0), (4, 0), (5, 1)]

    def test_histo_max_count(self):
        """Test counts above the int64 range are reported, not wrapped."""
        table = KmerCountTable(4)
        table["AAAA"] = kmertable.MAX_COUNT
        table["CCCC"] = 2**63
        table.count("ACGT")
        assert table.histo(zero=False) == [
            (1, 1), (2**63, 1), (kmertable.MAX_COUNT, 1)
        ]
        with pytest.raises(ValueError, match="histo: too large.*use zero=False"):
            table.histo(zero=True)

    def test_histo_dense_limit(self):
        """Test the zero-filled histogram refuses more than 5,000,000 rows."""
        table = KmerCountTable(4)
        table["AAAA"] = 5_000_000
        with pytest.raises(ValueError, match="histo: too large"):
            table.histo(zero=True)
        assert table.histo(zero=False) == [(5_000_000, 1)]

    def test_get_code_array(self, kmer_table):
        """Test vectorized code lookup."""
        codes = [kmertable.encode(k) for k in ["AAAA", "GGGG", "ACGT"]]
        counts = kmer_table.get_code_array(codes)
        assert counts.dtype == np.uint64
        np.testing.assert_array_equal(counts, np.array([2, 3, 0], dtype=np.uint64))


class TestProfile:
    """Tests for dense count profiles."""

    def test_profile_counts(self):
        """Test profile is indexed by canonical code."""
        table = create_sample_kmer_table(2, ["AC", "GT", "CG"])
        profile = table.profile()
        assert profile.shape == (16,)
        assert profile.dtype == np.uint64
        # AC = 1, CG = 6
        assert profile[1] == 2
        assert profile[6] == 1
        assert profile.sum() == 3

    def test_profile_normalized(self):
        """Test normalized profile sums to 1."""
        table = create_sample_kmer_table(2, ["AC", "GT", "CG", "AA"])
        profile = table.profile(normalize=True)
        assert isclose(profile.sum(), 1.0)
        assert isclose(profile[1], 0.5)

    def test_profile_empty_normalized(self):
        """Test normalizing an empty profile gives zeros, not NaN."""
        profile = KmerCountTable(3).profile(normalize=True)
        assert profile.dtype == np.float64
        assert not profile.any()

    def test_profile_too_large(self):
        """Test oversized profiles are refused."""
        with pytest.raises(ValueError, match="profile: too large"):
            KmerCountTable(12).profile()


class TestCombining:
    """Tests for add, set operations and cosine similarity."""

    def test_add_basic(self):
        """Test adding two identical tables."""
        table1 = KmerCountTable(5)
        table2 = KmerCountTable(5)
        table1.consume("ATGCATGCA")
        table2.consume("ATGCATGCA")

        counts_added, new_keys = table1.add(table2)

        assert counts_added == 5
        assert new_keys == 0
        assert table1.sum_counts == 10

    def test_add_different_content(self):
        """Test adding a table with one new k-mer."""
        table1 = KmerCountTable(5)
        table2 = KmerCountTable(5)
        table1.consume("ATGCATGCA")
        table2.consume("TGCATGCATGG")

        counts_added, new_keys = table1.add(table2)

        assert len(table1) == 3
        assert counts_added == 7
        assert new_keys == 1
        assert table1.sum_counts == 12

    def test_add_consumed(self):
        """Test consumed accumulates on add."""
        table1 = KmerCountTable(5)
        table2 = KmerCountTable(5)
        table1.consume("ATGCA")
        table2.consume("TGCAT")
        table1.add(table2)
        assert table1.consumed == 10

    def test_add_different_ksize(self):
        """Test adding tables of different ksize raises."""
        with pytest.raises(kmertable.KsizeMismatchError, match="add: ksize mismatch"):
            KmerCountTable(5).add(KmerCountTable(6))

    def test_set_operations(self):
        """Test set operations over canonical codes."""
        table1 = create_sample_kmer_table(3, ["AAA", "AAC"])
        table2 = create_sample_kmer_table(3, ["AAC", "AAG"])
        aaa, aac, aag = (kmertable.encode(k) for k in ["AAA", "AAC", "AAG"])

        assert table1.union(table2) == {aaa, aac, aag}
        assert table1.intersection(table2) == {aac}
        assert table1.difference(table2) == {aaa}
        assert table1.symmetric_difference(table2) == {aaa, aag}

    def test_set_operators(self):
        """Test the operator forms match the methods."""
        table1 = create_sample_kmer_table(3, ["AAA", "AAC"])
        table2 = create_sample_kmer_table(3, ["AAC", "AAG"])

        assert table1 | table2 == table1.union(table2)
        assert table1 & table2 == table1.intersection(table2)
        assert table1 - table2 == table1.difference(table2)
        assert table1 ^ table2 == table1.symmetric_difference(table2)

    def test_set_operation_wrong_type(self):
        """Test operators with non-tables raise TypeError."""
        with pytest.raises(TypeError):
            KmerCountTable(3) | {1, 2}

    def test_cosine_identical(self):
        """Test identical tables have similarity 1."""
        table1 = create_sample_kmer_table(4, ["AAAA", "AATT", "GGGG"])
        table2 = create_sample_kmer_table(4, ["AAAA", "AATT", "GGGG"])
        assert isclose(table1.cosine(table2), 1.0, rel_tol=1e-9)

    def test_cosine_disjoint(self):
        """Test tables with no shared k-mers have similarity 0."""
        table1 = create_sample_kmer_table(4, ["AAAA"])
        table2 = create_sample_kmer_table(4, ["CCCC"])
        assert table1.cosine(table2) == 0.0

    def test_cosine_empty(self):
        """Test an empty table has similarity 0."""
        table1 = create_sample_kmer_table(4, ["AAAA"])
        assert table1.cosine(KmerCountTable(4)) == 0.0

    @pytest.mark.skipif(not SCIPY_AVAILABLE, reason="scipy not installed")
    def test_cosine_matches_scipy(self):
        """Test cosine similarity against scipy."""
        table1 = KmerCountTable(4)
        table2 = KmerCountTable(4)
        for kmer, count in [("AAAA", 4), ("AATT", 3), ("GGGG", 1), ("CCAA", 4)]:
            table1[kmer] = count
        for kmer, count in [("AAAA", 5), ("AATT", 3), ("ATTG", 6), ("CCAA", 4)]:
            table2[kmer] = count

        vector1 = [4, 3, 1, 4, 0]
        vector2 = [5, 3, 0, 4, 6]
        expected = 1 - scipy_cosine(vector1, vector2)
        assert isclose(table1.cosine(table2), expected, rel_tol=1e-5)


class TestDump:
    """Tests for dump and dump_kmers."""

    @pytest.fixture
    def dump_table(self):
        """AAAA/TTTT = 2 (code 0), AATT = 1 (code 15), CCCC/GGGG = 2 (code 85)."""
        return create_sample_kmer_table(4, ["AAAA", "TTTT", "AATT", "GGGG", "GGGG"])

    def test_dump_conflicting_sort_options(self, dump_table):
        """Test sorting by counts and keys at once is refused."""
        with pytest.raises(ValueError, match="Cannot sort by both counts and keys at the same time."):
            dump_table.dump(sortcounts=True, sortkeys=True)
        with pytest.raises(ValueError, match="Cannot sort by both"):
            dump_table.dump_kmers(sortcounts=True, sortkeys=True)

    def test_dump_no_sorting(self, dump_table):
        """Test unsorted dump returns the same pairs as iteration."""
        assert dump_table.dump() == list(dump_table)

    def test_dump_sortcounts(self, dump_table):
        """Test sorting by count, ties broken by code."""
        assert dump_table.dump(sortcounts=True) == [(15, 1), (0, 2), (85, 2)]

    def test_dump_sortkeys(self, dump_table):
        """Test sorting by code."""
        assert dump_table.dump(sortkeys=True) == [(0, 2), (15, 1), (85, 2)]

    def test_dump_kmers(self, dump_table):
        """Test k-mer text is the canonical strand, in code order when sorted."""
        assert dump_table.dump_kmers(sortkeys=True) == [
            ("AAAA", 2), ("AATT", 1), ("CCCC", 2)
        ]
        assert dump_table.dump_kmers(sortcounts=True) == [
            ("AATT", 1), ("AAAA", 2), ("CCCC", 2)
        ]

    def test_dump_single_kmer(self):
        """Test a table with one k-mer."""
        table = create_sample_kmer_table(4, ["GGGG"])
        assert table.dump() == [(85, 1)]
        assert table.dump(sortcounts=True) == [(85, 1)]
        assert table.dump_kmers(sortkeys=True) == [("CCCC", 1)]

    def test_dump_empty(self):
        """Test an empty table dumps nothing."""
        table = KmerCountTable(4)
        assert table.dump() == []
        assert table.dump_kmers(sortcounts=True) == []

    def test_dump_is_a_copy(self, dump_table):
        """Test mutating the table does not change an earlier dump."""
        dumped = dump_table.dump(sortkeys=True)
        dump_table.count("AATT")
        assert dumped[1] == (15, 1)


class TestDunders:
    """Tests for the container protocol."""

    def test_len(self):
        """Test len counts distinct canonical k-mers."""
        table = KmerCountTable(16)
        assert len(table) == 0
        table.count("ACGTACGTACGTACGT")
        table.count("ACGTACGTACGTACGT")
        table.count("CCCCCCCCCCCCCCCC")
        table.consume("GCTAGCTAGCTA")
        assert len(table) == 2

    def test_iter(self, kmer_table):
        """Test iteration yields (code, count) pairs."""
        pairs = dict(kmer_table)
        assert pairs == {
            kmertable.encode("AAAA"): 2,
            kmertable.encode("ATAT"): 1,
            kmertable.encode("CCCC"): 3,
        }

    def test_iter_snapshot(self, kmer_table):
        """Test counting during iteration does not break the iterator."""
        for _ in kmer_table:
            kmer_table.count("ACGT")
        assert kmer_table.get("ACGT") == 3

    def test_getitem_setitem(self):
        """Test indexing syntax."""
        table = KmerCountTable(4)
        table["GGGG"] = 7
        assert table["CCCC"] == 7
        assert table.count("GGGG") == 8

    def test_contains(self, kmer_table):
        """Test membership by k-mer, either strand."""
        assert "TTTT" in kmer_table
        assert "ACGT" not in kmer_table

    def test_repr(self, kmer_table):
        assert repr(kmer_table) == "KmerCountTable(ksize=4, kmers=3)"

    def test_version(self):
        """Test the table records the package version."""
        assert KmerCountTable(31).version == kmertable.__version__


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
