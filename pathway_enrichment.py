"""
Pathway Enrichment Analysis Module

Pre-ranked GSEA over a DE table using GSEApy, and shaping of the GSEA result
table for the enrichment dot plot.

Classes:
    PathwayEnrichment: Ranking metric, gseapy.prerank wrapper and result shaping
"""

from typing import Dict, List, Optional, Union
import logging
import gseapy as gp
import numpy as np
import pandas as pd

from de_analysis import ensure_gene_column
from figure_config import DEFAULT_PADJ_FLOOR

logger = logging.getLogger(__name__)

GSEA_COLUMNS = ["Term", "NES", "padj", "gene_count", "set_size"]

GeneSets = Union[str, Dict[str, List[str]]]


def create_ranking_metric(
    de_results: pd.DataFrame, padj_floor: float = DEFAULT_PADJ_FLOOR
) -> pd.Series:
    """
    Rank genes by signed significance: -log10(padj) * sign(log2FoldChange).

    padj is clipped to padj_floor so that padj == 0 gives a large finite score
    instead of infinity. Genes without padj are dropped. When a gene appears
    more than once, its highest score is kept.

    Args:
        de_results: DataFrame with columns: gene, log2FoldChange, padj
        padj_floor: Smallest padj used in the log transform

    Returns:
        Series indexed by gene, sorted descending (stable on input order)
    """
    df = ensure_gene_column(de_results)
    df = df.dropna(subset=["gene", "padj"])

    lfc = df["log2FoldChange"].fillna(0.0)
    score = -np.log10(df["padj"].clip(lower=padj_floor)) * np.sign(lfc)
    ranking = pd.Series(score.values, index=df["gene"].values, name="score")

    ranking = ranking.sort_values(ascending=False, kind="mergesort")
    ranking = ranking[~ranking.index.duplicated(keep="first")]
    ranking.index.name = "gene"
    return ranking


def load_gene_sets(gene_sets: GeneSets) -> GeneSets:
    """
    Resolve the enrichment reference set.

    A path ending in .gmt is read into a {pathway: [genes]} mapping. Any other
    string is treated as a gseapy library name and passed through unchanged.
    """
    if isinstance(gene_sets, str) and gene_sets.endswith(".gmt"):
        gmt = gp.read_gmt(gene_sets)
        logger.info("Loaded %d gene sets from %s", len(gmt), gene_sets)
        return gmt
    return gene_sets


def _parse_fraction(value) -> Optional[tuple]:
    """Parse gseapy's 'Tag %' ("12/80") into (12, 80)."""
    text = str(value)
    if "/" not in text:
        return None
    k, n = text.split("/", 1)
    return int(k), int(n)


def format_gsea_results(res2d: pd.DataFrame) -> pd.DataFrame:
    """
    Standardize gseapy prerank output to: Term, NES, padj, gene_count, set_size.

    gene_count is the number of leading-edge genes and set_size the number of
    gene-set members present in the ranking. Both come from the 'Tag %' column
    ("k/n"); tables that already carry setSize/core_enrichment (clusterProfiler
    layout) are also accepted.
    """
    if res2d is None or res2d.empty:
        return pd.DataFrame(columns=GSEA_COLUMNS)

    df = res2d.copy()
    term_col = "Term" if "Term" in df.columns else ("Description" if "Description" in df.columns else df.columns[0])
    padj_col = next(
        (c for c in ["FDR q-val", "p.adjust", "padj", "Adjusted P-value"] if c in df.columns), None
    )
    if "NES" not in df.columns or padj_col is None:
        raise ValueError(
            f"Cannot format GSEA results: need 'NES' and an adjusted p-value column. "
            f"Found columns: {', '.join(map(str, df.columns))}"
        )

    out = pd.DataFrame({
        "Term": df[term_col].astype(str).values,
        "NES": pd.to_numeric(df["NES"], errors="coerce").values,
        "padj": pd.to_numeric(df[padj_col], errors="coerce").values,
    })

    if "Tag %" in df.columns:
        fractions = df["Tag %"].map(_parse_fraction)
        out["gene_count"] = [f[0] if f else np.nan for f in fractions]
        out["set_size"] = [f[1] if f else np.nan for f in fractions]
    elif "setSize" in df.columns and "core_enrichment" in df.columns:
        out["gene_count"] = df["core_enrichment"].astype(str).str.split("/").str.len().values
        out["set_size"] = df["setSize"].values
    else:
        raise ValueError(
            "Cannot format GSEA results: need 'Tag %' or 'setSize' + 'core_enrichment' "
            "to derive gene counts."
        )

    return out


def shape_gsea_table(gsea_df: pd.DataFrame, top_n: int = 5) -> pd.DataFrame:
    """
    Shape standardized GSEA results for display.

    1. GeneRatio = gene_count / set_size
    2. Drop rows with NES == 0 (or missing)
    3. Sort by NES descending (stable on original row order for ties)
    4. Keep the top_n most positive and top_n most negative rows

    Returns:
        DataFrame with min(top_n, #positive) + min(top_n, #negative) rows,
        sorted by NES descending
    """
    if gsea_df is None or gsea_df.empty:
        return pd.DataFrame(columns=GSEA_COLUMNS + ["GeneRatio"])

    df = gsea_df.copy()
    df["GeneRatio"] = df["gene_count"] / df["set_size"]
    df = df[df["NES"].notna() & (df["NES"] != 0)]
    df = df.sort_values("NES", ascending=False, kind="mergesort")

    positive = df[df["NES"] > 0].head(top_n)
    negative = df[df["NES"] < 0].tail(top_n)
    return pd.concat([positive, negative]).reset_index(drop=True)


class PathwayEnrichment:
    """
    Pre-ranked GSEA using GSEApy.

    Enrichment scores and their significance come from gseapy.prerank; this
    class only builds the ranking and reshapes the output.
    """

    def __init__(self, padj_floor: float = DEFAULT_PADJ_FLOOR):
        self.padj_floor = padj_floor

    def create_ranking_metric(self, de_results: pd.DataFrame) -> pd.Series:
        return create_ranking_metric(de_results, padj_floor=self.padj_floor)

    def run_gsea(
        self,
        gene_ranks: pd.Series,
        gene_sets: GeneSets,
        min_size: int = 15,
        max_size: int = 500,
        permutations: int = 1000,
        seed: int = 42,
    ) -> pd.DataFrame:
        """
        Run pre-ranked GSEA.

        Args:
            gene_ranks: Genes ranked by create_ranking_metric
            gene_sets: {pathway: genes} mapping, .gmt path, or gseapy library name
            min_size: Minimum gene set size
            max_size: Maximum gene set size
            permutations: Number of permutations
            seed: Random seed

        Returns:
            Standardized GSEA results (see format_gsea_results)

        Raises:
            ValueError: If gene_ranks is empty
        """
        if gene_ranks is None or len(gene_ranks) == 0:
            raise ValueError("Cannot run GSEA: the gene ranking is empty.")

        pre_res = gp.prerank(
            rnk=gene_ranks,
            gene_sets=load_gene_sets(gene_sets),
            min_size=min_size,
            max_size=max_size,
            permutation_num=permutations,
            outdir=None,
            seed=seed,
            verbose=False,
        )

        results = format_gsea_results(pre_res.res2d)
        logger.info("GSEA: %d gene sets scored", len(results))
        return results

    def enrichment_table(
        self,
        de_results: pd.DataFrame,
        gene_sets: GeneSets,
        top_n: int = 5,
        **gsea_kwargs,
    ) -> pd.DataFrame:
        """Ranking → prerank → display table (top_n up and top_n down pathways)."""
        ranks = self.create_ranking_metric(de_results)
        results = self.run_gsea(ranks, gene_sets, **gsea_kwargs)
        return shape_gsea_table(results, top_n=top_n)
