"""Tests for gene set comparison."""

import pandas as pd

from de_table_loader import DETable
from gene_overlap import compare_gene_sets, upregulated_gene_sets


def test_compare_gene_sets_basic():
    result = compare_gene_sets(["A", "B", "C"], ["B", "C", "D"])
    assert result.common == {"B", "C"}
    assert result.a_unique == {"A"}
    assert result.b_unique == {"D"}


def test_duplicates_collapse():
    result = compare_gene_sets(["A", "A", "B"], ["B", "B"])
    assert result.size_a == 2
    assert result.size_b == 1
    assert result.size_common == 1


def test_partition_reconstructs_union():
    a = [f"g{i}" for i in range(0, 50)] + ["g3", "g7"]
    b = [f"g{i}" for i in range(30, 90)]
    result = compare_gene_sets(a, b)
    assert result.union == set(a) | set(b)
    assert result.common.isdisjoint(result.a_unique)
    assert result.common.isdisjoint(result.b_unique)
    assert result.a_unique.isdisjoint(result.b_unique)
    assert result.size_common == len(set(a) & set(b))


def test_order_independent():
    assert compare_gene_sets(["C", "A", "B"], ["B"]) == compare_gene_sets(["A", "B", "C"], ["B"])


def test_venn_sizes_scenario():
    common = [f"common{i}" for i in range(65)]
    a = common + [f"a{i}" for i in range(184 - 65)]
    b = common + [f"b{i}" for i in range(187 - 65)]
    result = compare_gene_sets(a, b)
    assert (result.size_a, result.size_b, result.size_common) == (184, 187, 65)
    assert len(result.a_unique) == 119
    assert len(result.b_unique) == 122
    assert result.subset_sizes() == (119, 122, 65)


def test_empty_inputs():
    result = compare_gene_sets([], [])
    assert result.subset_sizes() == (0, 0, 0)


def _table(label, genes, lfc, padj):
    df = pd.DataFrame({"gene": genes, "log2FoldChange": lfc, "padj": padj})
    return DETable(label=label, results_df=df, sample_columns=[])


def test_upregulated_gene_sets():
    table_a = _table("KO", ["A", "B", "C", "D"], [1.0, 2.0, -1.0, 0.1], [0.01, 0.01, 0.01, 0.01])
    table_b = _table("KD", ["A", "B", "E"], [1.0, 0.2, 3.0], [0.01, 0.01, 0.001])
    result = upregulated_gene_sets(table_a, table_b)
    assert result.common == {"A"}
    assert result.a_unique == {"B"}
    assert result.b_unique == {"E"}
