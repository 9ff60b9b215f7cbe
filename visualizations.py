"""
Static figures for the ARID1A DE results.

Volcano plot, clustered heatmap and enrichment dot plot are built with Plotly;
the proportional Venn diagram is drawn with matplotlib-venn. No function here
modifies its input.
"""

from typing import Any, Dict, Optional, Sequence
import logging
import numpy as np
import pandas as pd
import plotly.graph_objects as go
import matplotlib.pyplot as plt
from matplotlib_venn import venn2
from scipy.cluster.hierarchy import linkage, leaves_list
from scipy.spatial.distance import pdist

from de_analysis import DEStatus, classify_results, ensure_gene_column
from expression_matrix import HeatmapMatrix, locate_curated_genes
from figure_config import (
    DEFAULT_LFC_THRESHOLD,
    DEFAULT_PADJ_FLOOR,
    DEFAULT_PADJ_THRESHOLD,
    DEFAULT_STYLE,
)
from gene_overlap import GeneSetComparison

logger = logging.getLogger(__name__)


def _style(style: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    merged = dict(DEFAULT_STYLE)
    if style:
        merged.update(style)
    return merged


def create_volcano_plot(
    results_df: pd.DataFrame,
    lfc_threshold: float = DEFAULT_LFC_THRESHOLD,
    padj_threshold: float = DEFAULT_PADJ_THRESHOLD,
    label_genes: Sequence[str] = (),
    style: Optional[Dict[str, Any]] = None,
    padj_floor: float = DEFAULT_PADJ_FLOOR,
    title: str = "Volcano Plot",
) -> go.Figure:
    """
    Create volcano plot from DE results.

    Args:
        results_df: DataFrame with columns: gene, log2FoldChange, padj
        lfc_threshold: Log2 fold change threshold (reference lines at ±threshold)
        padj_threshold: Adjusted p-value threshold (reference line at -log10(threshold))
        label_genes: Genes to annotate with their name when present
        style: Colours and axis limits (see DEFAULT_STYLE)
        padj_floor: Clamp for padj before -log10
        title: Plot title

    Returns:
        Plotly Figure object
    """
    if results_df is None or results_df.empty:
        raise ValueError(
            "Cannot create volcano plot: results_df is empty or None. "
            "Ensure the DE table was loaded and contains rows."
        )

    results_df = ensure_gene_column(results_df)
    required_cols = ["gene", "log2FoldChange", "padj"]
    missing = [col for col in required_cols if col not in results_df.columns]
    if missing:
        raise ValueError(f"Cannot create volcano plot: missing required columns {missing}.")

    s = _style(style)
    df = classify_results(results_df, lfc_threshold, padj_threshold)

    n_unclassifiable = int((df["status"] == DEStatus.UNCLASSIFIABLE.value).sum())
    if n_unclassifiable:
        logger.warning("Volcano plot: %d genes without padj are not drawn", n_unclassifiable)
    df = df[df["status"] != DEStatus.UNCLASSIFIABLE.value].copy()
    if df.empty:
        raise ValueError("Cannot create volcano plot: all padj values are missing.")

    df["log2FoldChange"] = df["log2FoldChange"].fillna(0.0)
    df["-log10_padj"] = -np.log10(df["padj"].clip(lower=padj_floor))

    colors = {
        DEStatus.UP.value: s["up_color"],
        DEStatus.DOWN.value: s["down_color"],
        DEStatus.NS.value: s["ns_color"],
    }

    fig = go.Figure()
    for status in [DEStatus.NS, DEStatus.DOWN, DEStatus.UP]:
        subset = df[df["status"] == status.value]
        fig.add_trace(
            go.Scatter(
                x=subset["log2FoldChange"],
                y=subset["-log10_padj"],
                mode="markers",
                name=f"{status.value} ({len(subset)})",
                marker=dict(color=colors[status.value], size=5, opacity=0.7),
                text=subset["gene"],
                hovertemplate="<b>%{text}</b><br>log₂FC: %{x:.2f}<br>-log₁₀(padj): %{y:.2f}<extra></extra>",
            )
        )

    fig.add_hline(y=-np.log10(padj_threshold), line_dash="dash", line_color="gray")
    fig.add_vline(x=lfc_threshold, line_dash="dash", line_color="gray")
    fig.add_vline(x=-lfc_threshold, line_dash="dash", line_color="gray")

    labelled = df[df["gene"].isin(list(label_genes))]
    if not labelled.empty:
        fig.add_trace(
            go.Scatter(
                x=labelled["log2FoldChange"],
                y=labelled["-log10_padj"],
                mode="markers+text",
                text=labelled["gene"],
                textposition="top center",
                textfont=dict(size=10),
                marker=dict(color="black", size=7, symbol="circle-open"),
                showlegend=False,
                hoverinfo="skip",
            )
        )

    fig.update_layout(
        title=title,
        xaxis=dict(title="log₂(Fold Change)", range=list(s["volcano_xlim"])),
        yaxis=dict(title="-log₁₀(Adjusted P-value)", range=list(s["volcano_ylim"])),
        template="simple_white",
        showlegend=True,
    )
    return fig


def order_rows_by_clustering(matrix: pd.DataFrame) -> pd.DataFrame:
    """
    Reorder rows by average-linkage hierarchical clustering (euclidean).

    Rows with any NaN (zero-variance or incomplete genes) cannot be clustered; they are kept
    and moved to the bottom in their original order.
    """
    finite = matrix[matrix.notna().all(axis=1)]
    degenerate = matrix[~matrix.notna().all(axis=1)]

    if len(finite) > 1:
        linkage_matrix = linkage(pdist(finite.values, metric="euclidean"), method="average")
        finite = finite.iloc[leaves_list(linkage_matrix)]

    return pd.concat([finite, degenerate])


def create_clustered_heatmap(
    heatmap: HeatmapMatrix,
    curated_genes: Sequence[str] = (),
    style: Optional[Dict[str, Any]] = None,
    title: Optional[str] = None,
) -> go.Figure:
    """
    Create heatmap of row z-scores with gene (row) clustering.

    Only curated genes get a y-axis label; every row carries its gene name in
    the hover text. Zero-variance rows are drawn blank at the bottom.

    Args:
        heatmap: Matrix from build_heatmap_matrix
        curated_genes: Genes of interest to label
        style: Uses 'heatmap_colorscale'
        title: Plot title (default derived from the matrix label)

    Returns:
        Plotly Figure object
    """
    if heatmap is None or heatmap.matrix.empty:
        raise ValueError(
            "Cannot create heatmap: no genes passed the significance filter. "
            "Check the thresholds or the DE input table."
        )

    s = _style(style)
    plot_data = order_rows_by_clustering(heatmap.matrix)
    positions = locate_curated_genes(plot_data, curated_genes)

    row_positions = list(range(plot_data.shape[0]))
    gene_text = [[str(gene)] * plot_data.shape[1] for gene in plot_data.index]

    fig = go.Figure(
        data=go.Heatmap(
            z=plot_data.values,
            x=plot_data.columns.tolist(),
            y=row_positions,
            text=gene_text,
            colorscale=s["heatmap_colorscale"],
            zmid=0,
            colorbar=dict(title="Z-score"),
            hovertemplate="Gene: %{text}<br>Sample: %{x}<br>Z-score: %{z:.2f}<extra></extra>",
        )
    )

    fig.update_layout(
        title=title or f"{heatmap.label} significant genes (n={plot_data.shape[0]})",
        xaxis_title="Samples",
        yaxis=dict(
            title="Genes",
            tickmode="array",
            tickvals=list(positions.values()),
            ticktext=list(positions.keys()),
            autorange="reversed",
        ),
        height=max(400, min(1600, plot_data.shape[0] * 4 + 200)),
        template="simple_white",
    )
    return fig


def create_enrichment_dotplot(
    gsea_table: pd.DataFrame,
    title: str = "GSEA",
    max_marker_size: float = 30.0,
) -> go.Figure:
    """
    Create GSEA dot plot: NES on x, pathway on y, dot size = GeneRatio,
    colour = -log10(adjusted p-value).

    Args:
        gsea_table: Output of shape_gsea_table (Term, NES, padj, GeneRatio)
        title: Plot title
        max_marker_size: Marker size for GeneRatio == 1

    Returns:
        Plotly Figure object
    """
    if gsea_table is None or gsea_table.empty:
        fig = go.Figure()
        fig.update_layout(
            title=title,
            annotations=[dict(
                text="No enrichment results to display",
                xref="paper", yref="paper",
                x=0.5, y=0.5, showarrow=False, font=dict(size=16)
            )]
        )
        return fig

    missing = [c for c in ["Term", "NES", "padj", "GeneRatio"] if c not in gsea_table.columns]
    if missing:
        raise ValueError(f"Cannot create enrichment dot plot: missing columns {missing}.")

    df = gsea_table.copy()
    df["-log10_padj"] = -np.log10(df["padj"].astype(float).clip(lower=DEFAULT_PADJ_FLOOR))
    df["term_display"] = df["Term"].astype(str).str.replace("HALLMARK_", "", regex=False)
    df["term_display"] = df["term_display"].apply(lambda x: x[:60] + "..." if len(x) > 60 else x)
    # Plotly draws categorical y bottom-up; reverse so the highest NES is on top
    df = df.iloc[::-1]

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=df["NES"],
        y=df["term_display"],
        mode="markers",
        marker=dict(
            size=(df["GeneRatio"].astype(float) * max_marker_size).clip(lower=4),
            color=df["-log10_padj"],
            colorscale="Viridis",
            showscale=True,
            colorbar=dict(title="-log₁₀(Adj. P)"),
            line=dict(width=1, color="DarkSlateGrey"),
        ),
        customdata=df["GeneRatio"],
        hovertemplate=(
            "<b>%{y}</b><br>"
            "NES: %{x:.2f}<br>"
            "GeneRatio: %{customdata:.2f}<extra></extra>"
        ),
    ))

    fig.add_vline(x=0, line_color="gray", line_width=1)
    fig.update_layout(
        title=title,
        xaxis_title="Normalized Enrichment Score",
        yaxis_title="",
        height=max(400, len(df) * 35 + 150),
        margin=dict(l=300),
        showlegend=False,
        template="simple_white",
    )
    return fig


def create_venn_diagram(
    comparison: GeneSetComparison,
    labels: Sequence[str] = ("A", "B"),
    title: str = "Upregulated genes",
    style: Optional[Dict[str, Any]] = None,
    figsize=(6, 5),
) -> plt.Figure:
    """
    Create a proportional two-set Venn diagram.

    Circle and overlap areas are proportional to |A|, |B| and |A ∩ B|
    (layout by matplotlib_venn.venn2).

    Args:
        comparison: Result of compare_gene_sets
        labels: Names for the two sets
        title: Plot title
        style: Uses 'venn_colors'

    Returns:
        matplotlib Figure
    """
    if len(labels) != 2:
        raise ValueError("A two-set Venn diagram needs exactly 2 labels.")
    if comparison.size_a == 0 and comparison.size_b == 0:
        raise ValueError("Cannot create Venn diagram: both gene sets are empty.")

    s = _style(style)
    fig, ax = plt.subplots(figsize=figsize)
    venn2(
        subsets=comparison.subset_sizes(),
        set_labels=(f"{labels[0]} ({comparison.size_a})", f"{labels[1]} ({comparison.size_b})"),
        set_colors=tuple(s["venn_colors"]),
        alpha=0.5,
        ax=ax,
    )
    ax.set_title(title)
    fig.tight_layout()
    return fig
