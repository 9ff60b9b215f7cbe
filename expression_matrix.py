"""
Heatmap matrix construction: significant genes × samples, row z-scored.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List
import logging
import warnings
import numpy as np
import pandas as pd

from de_analysis import filter_significant
from de_table_loader import DETable
from figure_config import DEFAULT_LFC_THRESHOLD, DEFAULT_PADJ_THRESHOLD

logger = logging.getLogger(__name__)


@dataclass
class HeatmapMatrix:
    """Row z-scored expression matrix (genes × samples).

    degenerate_genes lists rows with zero variance; incomplete_genes lists rows
    with a missing sample count. Both have NaN z-scores across the whole row.
    """

    matrix: pd.DataFrame
    degenerate_genes: List[str] = field(default_factory=list)
    incomplete_genes: List[str] = field(default_factory=list)
    label: str = ""

    @property
    def n_genes(self) -> int:
        return self.matrix.shape[0]


def zscore_rows(matrix: pd.DataFrame) -> pd.DataFrame:
    """
    Z-score each row independently: (x - row mean) / row std.

    Uses the sample standard deviation (ddof=1). Zero-variance rows become NaN;
    they are never replaced with zeros.
    """
    std = matrix.std(axis=1)
    centered = matrix.sub(matrix.mean(axis=1), axis=0)
    return centered.div(std.where(std > 0), axis=0)


def build_heatmap_matrix(
    table: DETable,
    lfc_threshold: float = DEFAULT_LFC_THRESHOLD,
    padj_threshold: float = DEFAULT_PADJ_THRESHOLD,
    log_transform: bool = True,
) -> HeatmapMatrix:
    """
    Build the heatmap matrix for one experiment.

    Steps:
    1. Keep genes with |log2FC| >= lfc_threshold and padj <= padj_threshold
    2. Select the sample count columns, index rows by gene (input order kept)
    3. log2(count + 1) if log_transform
    4. Z-score each row across samples; rows with a missing count are left NaN

    Args:
        table: Loaded DE table
        lfc_threshold: Minimum |log2FC|
        padj_threshold: Maximum padj
        log_transform: Apply log2(x + 1) before z-scoring (default: True)

    Returns:
        HeatmapMatrix
    """
    significant = filter_significant(table.results_df, lfc_threshold, padj_threshold)

    values = significant.set_index("gene")[table.sample_columns].astype(float)
    if log_transform:
        values = np.log2(values + 1)

    incomplete_mask = values.isna().any(axis=1).values
    z = zscore_rows(values)
    z.loc[incomplete_mask] = np.nan

    incomplete = z.index[incomplete_mask].tolist()
    if incomplete:
        logger.warning(
            "%s: %d genes with missing sample counts have undefined z-scores (NaN): %s",
            table.label, len(incomplete), ", ".join(map(str, incomplete[:10])),
        )

    degenerate = z.index[~incomplete_mask & z.isna().all(axis=1).values].tolist()
    if degenerate:
        logger.warning(
            "%s: %d zero-variance genes have undefined z-scores (NaN): %s",
            table.label, len(degenerate), ", ".join(map(str, degenerate[:10])),
        )

    logger.info("%s: heatmap matrix %d genes × %d samples", table.label, z.shape[0], z.shape[1])
    return HeatmapMatrix(
        matrix=z, degenerate_genes=degenerate, incomplete_genes=incomplete, label=table.label
    )


def locate_curated_genes(matrix: pd.DataFrame, genes: Iterable[str]) -> Dict[str, int]:
    """
    Find the row position of each curated gene in a matrix indexed by gene.

    Genes absent from the matrix are skipped (with a warning), not an error.

    Returns:
        Dict mapping gene → row position, in curated-list order
    """
    positions: Dict[str, int] = {}
    missing: List[str] = []
    index = list(matrix.index)
    for gene in genes:
        if gene in positions:
            continue
        if gene in index:
            positions[gene] = index.index(gene)
        else:
            missing.append(gene)

    if missing:
        warnings.warn(
            f"{len(missing)} curated genes not among the significant genes and will not be labelled: {missing}"
        )
    return positions
