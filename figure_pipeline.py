"""
ARID1A figure pipeline: load → classify → reshape → present, executed once.

Usage:
    arid1a-figures config/arid1a_figures.yaml
    arid1a-figures config/arid1a_figures.yaml --output-dir out/ --verbose
"""

from pathlib import Path
from typing import Dict, Optional
import logging
import sys
import click

from de_analysis import compute_de_summary
from de_table_loader import DETable, DETableValidationError, load_de_table
from expression_matrix import build_heatmap_matrix
from export_engine import ExportEngine
from figure_config import FigureConfig, load_config
from gene_overlap import upregulated_gene_sets
from pathway_enrichment import PathwayEnrichment
from visualizations import (
    create_clustered_heatmap,
    create_enrichment_dotplot,
    create_venn_diagram,
    create_volcano_plot,
)

logger = logging.getLogger(__name__)


def load_tables(config: FigureConfig) -> Dict[str, DETable]:
    """Load every configured experiment; any missing file or column aborts the run."""
    return {
        key: load_de_table(schema, separator=config.gene_separator)
        for key, schema in config.experiments.items()
    }


def build_figures(config: FigureConfig, tables: Dict[str, DETable]) -> Dict:
    """Build all figures in their fixed order. Returns name → figure."""
    thresholds = dict(lfc_threshold=config.lfc_threshold, padj_threshold=config.padj_threshold)
    figures = {}

    for table in tables.values():
        summary = compute_de_summary(table.results_df, **thresholds)
        logger.info(
            "%s: %d up, %d down, %d not significant, %d unclassifiable",
            table.label, summary["upregulated"], summary["downregulated"],
            summary["not_significant"], summary["unclassifiable"],
        )
        logger.info(
            "%s: top up %s; top down %s",
            table.label, ", ".join(map(str, summary["top_up_genes"])) or "-",
            ", ".join(map(str, summary["top_down_genes"])) or "-",
        )

    gsea_table = tables[config.gsea.experiment]
    figures["volcano"] = create_volcano_plot(
        gsea_table.results_df,
        label_genes=config.curated_genes,
        style=config.style,
        padj_floor=config.padj_floor,
        title=f"{gsea_table.label} vs. Control",
        **thresholds,
    )

    for key, table in tables.items():
        heatmap = build_heatmap_matrix(table, **thresholds)
        figures[f"heatmap_{key}"] = create_clustered_heatmap(
            heatmap, curated_genes=config.curated_genes, style=config.style
        )

    enrichment = PathwayEnrichment(padj_floor=config.padj_floor)
    shaped = enrichment.enrichment_table(
        gsea_table.results_df,
        config.gsea.gene_sets,
        top_n=config.gsea.top_n,
        min_size=config.gsea.min_size,
        max_size=config.gsea.max_size,
        permutations=config.gsea.permutations,
        seed=config.gsea.seed,
    )
    figures["gsea_dotplot"] = create_enrichment_dotplot(shaped, title=f"GSEA: {gsea_table.label}")

    key_a, key_b = config.venn_experiments
    comparison = upregulated_gene_sets(tables[key_a], tables[key_b], **thresholds)
    figures["venn_upregulated"] = create_venn_diagram(
        comparison,
        labels=(tables[key_a].label, tables[key_b].label),
        title="Upregulated genes",
        style=config.style,
    )
    return figures


def run_pipeline(config: FigureConfig) -> Dict[str, Path]:
    """
    Run the whole pipeline once and write every figure.

    Returns:
        Dict mapping figure name → written image path
    """
    tables = load_tables(config)
    figures = build_figures(config, tables)
    engine = ExportEngine(config.output_dir, format=config.output_format, scale=config.output_scale)
    return engine.export_all(figures)


@click.command()
@click.argument("config_path", type=click.Path(dir_okay=False))
@click.option("--output-dir", "-o", type=click.Path(file_okay=False), default=None,
              help="Override output.directory from the config file.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(config_path: str, output_dir: Optional[str], verbose: bool) -> None:
    """Render the ARID1A DE figures described by CONFIG_PATH."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = load_config(config_path, output_dir=output_dir)
        written = run_pipeline(config)
    except (FileNotFoundError, ValueError, DETableValidationError) as e:
        logger.error(str(e))
        sys.exit(1)

    for name, path in written.items():
        click.echo(f"{name}: {path}")


if __name__ == "__main__":
    main()
