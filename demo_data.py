"""
Demo dataset generator for the ARID1A figure pipeline.

Generates two DE tables in the raw input layout (tab-delimited, annotation
column "<gene>|<extra>", experiment-specific column names), a small GMT gene
set collection and a matching YAML config, so the pipeline can run end to end
without the real data.
"""

from pathlib import Path
from typing import Dict, List, Union
import numpy as np
import pandas as pd
import yaml

CURATED_GENES = ["ARID1A", "CDKN1A", "MYC", "CCND1", "AXIN2", "LGR5", "CDX2", "VIL1"]

DEMO_EXPERIMENTS = {
    "knockout": {
        "label": "ARID1A KO",
        "file": "arid1a_ko_vs_control.txt",
        "columns": {
            "annotation": "Annotation/Divergence",
            "log2FoldChange": "ARID1A_KO vs. Control Log2 Fold Change",
            "padj": "ARID1A_KO vs. Control adj. p-value",
        },
        "samples": {
            "Control_Rep1": "Control_Rep1_tags",
            "Control_Rep2": "Control_Rep2_tags",
            "ARID1A_Rep1": "ARID1A_KO_Rep1_tags",
            "ARID1A_Rep2": "ARID1A_KO_Rep2_tags",
        },
        "seed": 42,
    },
    "knockdown": {
        "label": "ARID1A KD",
        "file": "arid1a_kd_vs_control.txt",
        "columns": {
            "annotation": "Annotation/Divergence",
            "log2FoldChange": "siARID1A vs. siControl Log2 Fold Change",
            "padj": "siARID1A vs. siControl adj. p-value",
        },
        "samples": {
            "Control_Rep1": "siControl_1",
            "Control_Rep2": "siControl_2",
            "ARID1A_Rep1": "siARID1A_1",
            "ARID1A_Rep2": "siARID1A_2",
        },
        "seed": 7,
    },
}


def demo_gene_names(n_genes: int = 400) -> List[str]:
    """Curated genes first, then GENE0001, GENE0002, ..."""
    extra = [f"GENE{i:04d}" for i in range(1, n_genes - len(CURATED_GENES) + 1)]
    return CURATED_GENES + extra


def make_demo_experiment(
    columns: Dict[str, str],
    samples: Dict[str, str],
    seed: int = 42,
    n_genes: int = 400,
    frac_de: float = 0.25,
) -> pd.DataFrame:
    """
    Generate one DE table in the raw input layout.

    Args:
        columns: Canonical name → file column name (annotation, log2FoldChange, padj)
        samples: Canonical sample name → file column name; the first half are
                 controls, the second half ARID1A-deficient replicates
        seed: Random seed
        n_genes: Number of genes (rows)
        frac_de: Fraction of genes given a real fold change

    Returns:
        DataFrame with the file's column names
    """
    rng = np.random.default_rng(seed)
    genes = demo_gene_names(n_genes)

    is_de = rng.random(n_genes) < frac_de
    lfc = np.where(is_de, rng.normal(0, 2, n_genes), rng.normal(0, 0.2, n_genes))
    padj = np.where(is_de, rng.uniform(1e-20, 0.01, n_genes), rng.uniform(0.05, 1, n_genes))

    base_mean = rng.lognormal(mean=5, sigma=1.5, size=n_genes)
    sample_cols = list(samples.values())
    n_control = len(sample_cols) // 2
    counts = {}
    for i, col in enumerate(sample_cols):
        mean = base_mean * (2 ** lfc if i >= n_control else 1.0)
        counts[col] = rng.poisson(mean)

    df = pd.DataFrame({
        columns["annotation"]: [f"{g}|chr{rng.integers(1, 23)}|protein-coding" for g in genes],
        columns["log2FoldChange"]: np.round(lfc, 4),
        columns["padj"]: padj,
    })
    for col in sample_cols:
        df[col] = counts[col]

    # A few missing fold changes, as produced upstream for zero-count genes
    df.loc[df.index[-3:], columns["log2FoldChange"]] = np.nan
    return df


def make_demo_gene_sets(n_genes: int = 400, n_sets: int = 12, set_size: int = 30, seed: int = 0) -> Dict[str, List[str]]:
    """Random gene sets named like MSigDB hallmark pathways."""
    rng = np.random.default_rng(seed)
    genes = demo_gene_names(n_genes)
    return {
        f"HALLMARK_DEMO_PATHWAY_{i + 1}": sorted(rng.choice(genes, size=set_size, replace=False).tolist())
        for i in range(n_sets)
    }


def write_gmt(gene_sets: Dict[str, List[str]], path: Union[str, Path]) -> Path:
    path = Path(path)
    with open(path, "w") as f:
        for name, genes in gene_sets.items():
            f.write("\t".join([name, "demo"] + list(genes)) + "\n")
    return path


def write_demo_inputs(directory: Union[str, Path], n_genes: int = 400) -> Path:
    """
    Write demo DE tables, a GMT file and a config YAML into directory.

    Returns:
        Path to the written config file
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    experiments = {}
    for key, experiment in DEMO_EXPERIMENTS.items():
        df = make_demo_experiment(experiment["columns"], experiment["samples"], seed=experiment["seed"], n_genes=n_genes)
        df.to_csv(directory / experiment["file"], sep="\t", index=False)
        experiments[key] = {
            "label": experiment["label"],
            "path": experiment["file"],
            "columns": experiment["columns"],
            "samples": experiment["samples"],
        }

    write_gmt(make_demo_gene_sets(n_genes), directory / "demo_gene_sets.gmt")

    config = {
        "thresholds": {"lfc": 0.585, "padj": 0.05},
        "experiments": experiments,
        "curated_genes": CURATED_GENES,
        "gsea": {
            "experiment": "knockout",
            "gene_sets": "demo_gene_sets.gmt",
            "min_size": 5,
            "max_size": 500,
            "permutations": 100,
            "seed": 42,
            "top_n": 5,
        },
        "venn": {"experiments": ["knockout", "knockdown"]},
        "output": {"directory": "figures", "format": "png", "scale": 2},
    }
    config_path = directory / "demo_config.yaml"
    with open(config_path, "w") as f:
        yaml.safe_dump(config, f, sort_keys=False)
    return config_path
