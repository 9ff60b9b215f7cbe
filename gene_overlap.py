"""Overlap between two gene collections (feeds the proportional Venn diagram)."""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Tuple
import logging

from de_analysis import get_upregulated
from de_table_loader import DETable
from figure_config import DEFAULT_LFC_THRESHOLD, DEFAULT_PADJ_THRESHOLD

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneSetComparison:
    """Partition of A ∪ B into common, A-only and B-only genes."""

    common: FrozenSet[str]
    a_unique: FrozenSet[str]
    b_unique: FrozenSet[str]

    @property
    def size_a(self) -> int:
        return len(self.common) + len(self.a_unique)

    @property
    def size_b(self) -> int:
        return len(self.common) + len(self.b_unique)

    @property
    def size_common(self) -> int:
        return len(self.common)

    @property
    def union(self) -> FrozenSet[str]:
        return self.common | self.a_unique | self.b_unique

    def subset_sizes(self) -> Tuple[int, int, int]:
        """(|A - B|, |B - A|, |A ∩ B|), the order matplotlib_venn.venn2 expects."""
        return len(self.a_unique), len(self.b_unique), len(self.common)


def compare_gene_sets(a: Iterable[str], b: Iterable[str]) -> GeneSetComparison:
    """
    Compare two gene collections with set semantics (duplicates collapse).

    Args:
        a: First collection of gene identifiers
        b: Second collection of gene identifiers

    Returns:
        GeneSetComparison with common = A ∩ B, a_unique = A - B, b_unique = B - A
    """
    set_a = frozenset(a)
    set_b = frozenset(b)
    return GeneSetComparison(
        common=set_a & set_b,
        a_unique=set_a - set_b,
        b_unique=set_b - set_a,
    )


def upregulated_gene_sets(
    table_a: DETable,
    table_b: DETable,
    lfc_threshold: float = DEFAULT_LFC_THRESHOLD,
    padj_threshold: float = DEFAULT_PADJ_THRESHOLD,
) -> GeneSetComparison:
    """Compare the upregulated genes of two experiments."""
    up_a = get_upregulated(table_a.results_df, lfc_threshold, padj_threshold)["gene"].dropna()
    up_b = get_upregulated(table_b.results_df, lfc_threshold, padj_threshold)["gene"].dropna()
    comparison = compare_gene_sets(up_a, up_b)
    logger.info(
        "Upregulated overlap: %s=%d, %s=%d, common=%d",
        table_a.label, comparison.size_a, table_b.label, comparison.size_b, comparison.size_common,
    )
    return comparison
