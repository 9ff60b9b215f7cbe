"""
Classification of pre-computed differential expression results.

Each gene is labelled Upregulated, Downregulated or NotSignificant from its
log2 fold change and adjusted p-value. Genes without an adjusted p-value get a
fourth, explicit label (Unclassifiable) instead of being folded into
NotSignificant.
"""

from enum import Enum
from typing import Dict, List, Optional
import logging
import numpy as np
import pandas as pd

from figure_config import DEFAULT_LFC_THRESHOLD, DEFAULT_PADJ_THRESHOLD

logger = logging.getLogger(__name__)


class DEStatus(str, Enum):
    """Three-way DE label plus the state for rows that cannot be labelled."""

    UP = "Upregulated"
    DOWN = "Downregulated"
    NS = "NotSignificant"
    UNCLASSIFIABLE = "Unclassifiable"


def ensure_gene_column(df: pd.DataFrame) -> pd.DataFrame:
    """
    Ensure DataFrame has a 'gene' column.

    Handles gene identifiers stored in a named index or under a common alias
    ("Gene", "SYMBOL", "gene_name", ...).

    Args:
        df: DataFrame that may have gene info in index or with non-standard column name

    Returns:
        DataFrame with a lowercase "gene" column
    """
    if "gene" in df.columns:
        return df

    gene_aliases = ["Gene", "GENE", "GeneSymbol", "gene_symbol", "gene_id", "SYMBOL", "gene_name"]
    for alias in gene_aliases:
        if alias in df.columns:
            return df.rename(columns={alias: "gene"})

    if df.index.name and df.index.name.lower() in ["gene", "genesymbol", "gene_symbol", "symbol"]:
        df = df.reset_index()
        df.columns = ["gene"] + list(df.columns[1:])
        return df

    return df


def classify_gene(
    log2_fold_change: Optional[float],
    padj: Optional[float],
    lfc_threshold: float = DEFAULT_LFC_THRESHOLD,
    padj_threshold: float = DEFAULT_PADJ_THRESHOLD,
) -> DEStatus:
    """
    Classify a single gene.

    Both thresholds are inclusive: lfc = 0.585 with padj = 0.05 is Upregulated.
    A missing fold change counts as 0; a missing padj yields Unclassifiable.

    Args:
        log2_fold_change: log2 fold change (None/NaN treated as 0)
        padj: Adjusted p-value
        lfc_threshold: Minimum |log2FC| for significance
        padj_threshold: Maximum padj for significance

    Returns:
        DEStatus
    """
    if padj is None or pd.isna(padj):
        return DEStatus.UNCLASSIFIABLE
    if log2_fold_change is None or pd.isna(log2_fold_change):
        log2_fold_change = 0.0

    if padj <= padj_threshold:
        if log2_fold_change >= lfc_threshold:
            return DEStatus.UP
        if log2_fold_change <= -lfc_threshold:
            return DEStatus.DOWN
    return DEStatus.NS


def classify_results(
    results_df: pd.DataFrame,
    lfc_threshold: float = DEFAULT_LFC_THRESHOLD,
    padj_threshold: float = DEFAULT_PADJ_THRESHOLD,
) -> pd.DataFrame:
    """
    Add a 'status' column (DEStatus values) to a copy of a DE results table.

    Vectorised equivalent of classify_gene.

    Args:
        results_df: DataFrame with columns: log2FoldChange, padj
        lfc_threshold: Minimum |log2FC| for significance
        padj_threshold: Maximum padj for significance

    Returns:
        New DataFrame with an added 'status' column
    """
    missing = [c for c in ["log2FoldChange", "padj"] if c not in results_df.columns]
    if missing:
        raise ValueError(f"Cannot classify DE results: missing columns {missing}.")

    df = results_df.copy()
    lfc = df["log2FoldChange"].fillna(0.0)
    padj = df["padj"]
    significant = padj <= padj_threshold

    status = np.select(
        [
            padj.isna(),
            significant & (lfc >= lfc_threshold),
            significant & (lfc <= -lfc_threshold),
        ],
        [DEStatus.UNCLASSIFIABLE.value, DEStatus.UP.value, DEStatus.DOWN.value],
        default=DEStatus.NS.value,
    )
    df["status"] = status
    return df


def filter_significant(
    results_df: pd.DataFrame,
    lfc_threshold: float = DEFAULT_LFC_THRESHOLD,
    padj_threshold: float = DEFAULT_PADJ_THRESHOLD,
) -> pd.DataFrame:
    """Rows with |log2FC| >= lfc_threshold and padj <= padj_threshold, input order kept."""
    lfc = results_df["log2FoldChange"].fillna(0.0)
    mask = (lfc.abs() >= lfc_threshold) & (results_df["padj"] <= padj_threshold)
    return results_df[mask].copy()


def get_upregulated(
    results_df: pd.DataFrame,
    lfc_threshold: float = DEFAULT_LFC_THRESHOLD,
    padj_threshold: float = DEFAULT_PADJ_THRESHOLD,
) -> pd.DataFrame:
    """Get upregulated genes."""
    df = classify_results(results_df, lfc_threshold, padj_threshold)
    return df[df["status"] == DEStatus.UP.value]


def get_downregulated(
    results_df: pd.DataFrame,
    lfc_threshold: float = DEFAULT_LFC_THRESHOLD,
    padj_threshold: float = DEFAULT_PADJ_THRESHOLD,
) -> pd.DataFrame:
    """Get downregulated genes."""
    df = classify_results(results_df, lfc_threshold, padj_threshold)
    return df[df["status"] == DEStatus.DOWN.value]


def compute_de_summary(
    results_df: pd.DataFrame,
    lfc_threshold: float = DEFAULT_LFC_THRESHOLD,
    padj_threshold: float = DEFAULT_PADJ_THRESHOLD,
    top_n: int = 10,
) -> Dict[str, object]:
    """
    Summarise a DE table: counts per status and the strongest up/down genes.

    Returns:
        Dict with keys: total, upregulated, downregulated, not_significant,
        unclassifiable, top_up_genes, top_down_genes
    """
    df = classify_results(ensure_gene_column(results_df), lfc_threshold, padj_threshold)
    counts = df["status"].value_counts()

    up = df[df["status"] == DEStatus.UP.value]
    down = df[df["status"] == DEStatus.DOWN.value]
    top_up: List[str] = up.nlargest(top_n, "log2FoldChange")["gene"].tolist()
    top_down: List[str] = down.nsmallest(top_n, "log2FoldChange")["gene"].tolist()

    return {
        "total": len(df),
        "upregulated": int(counts.get(DEStatus.UP.value, 0)),
        "downregulated": int(counts.get(DEStatus.DOWN.value, 0)),
        "not_significant": int(counts.get(DEStatus.NS.value, 0)),
        "unclassifiable": int(counts.get(DEStatus.UNCLASSIFIABLE.value, 0)),
        "top_up_genes": top_up,
        "top_down_genes": top_down,
    }
