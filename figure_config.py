"""
Configuration loader for the ARID1A figure pipeline.

All thresholds, per-experiment column mappings, curated genes and plot style
live in a single YAML file (see config/arid1a_figures.yaml).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging
import yaml

logger = logging.getLogger(__name__)

DEFAULT_LFC_THRESHOLD = 0.585
DEFAULT_PADJ_THRESHOLD = 0.05
DEFAULT_PADJ_FLOOR = 1e-300

CANONICAL_COLUMNS = ["annotation", "log2FoldChange", "padj"]

DEFAULT_STYLE = {
    "up_color": "#d62728",
    "down_color": "#1f77b4",
    "ns_color": "lightgray",
    "volcano_xlim": [-8, 8],
    "volcano_ylim": [0, 50],
    "heatmap_colorscale": "RdBu_r",
    "venn_colors": ["#d62728", "#1f77b4"],
}


class ConfigError(ValueError):
    """Raised when the pipeline configuration is incomplete or malformed."""


@dataclass
class ExperimentSchema:
    """Explicit column mapping for one DE input table."""

    key: str
    label: str
    path: Path
    columns: Dict[str, str]  # canonical name -> column in file
    samples: Dict[str, str]  # canonical sample name -> column in file


@dataclass
class GSEASettings:
    experiment: str
    gene_sets: str
    min_size: int = 15
    max_size: int = 500
    permutations: int = 1000
    seed: int = 42
    top_n: int = 5


@dataclass
class FigureConfig:
    """Complete pipeline configuration."""

    experiments: Dict[str, ExperimentSchema]
    gsea: GSEASettings
    venn_experiments: List[str]
    output_dir: Path
    lfc_threshold: float = DEFAULT_LFC_THRESHOLD
    padj_threshold: float = DEFAULT_PADJ_THRESHOLD
    padj_floor: float = DEFAULT_PADJ_FLOOR
    gene_separator: str = "|"
    curated_genes: List[str] = field(default_factory=list)
    output_format: str = "png"
    output_scale: int = 3
    style: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_STYLE))

    def experiment(self, key: str) -> ExperimentSchema:
        if key not in self.experiments:
            available = ", ".join(self.experiments)
            raise ConfigError(f"Unknown experiment '{key}'. Available: {available}")
        return self.experiments[key]


def _require(section: Dict[str, Any], key: str, where: str) -> Any:
    if not isinstance(section, dict) or key not in section:
        raise ConfigError(f"Missing required config key: {where}{key}")
    return section[key]


def _resolve(path_value: str, base_dir: Path) -> Path:
    path = Path(path_value)
    if not path.is_absolute():
        path = base_dir / path
    return path


def _parse_experiment(key: str, raw: Dict[str, Any], base_dir: Path) -> ExperimentSchema:
    where = f"experiments.{key}."
    columns = _require(raw, "columns", where)
    missing = [c for c in CANONICAL_COLUMNS if c not in columns]
    if missing:
        raise ConfigError(f"Missing required config key: {where}columns.{missing[0]}")

    samples = _require(raw, "samples", where)
    if not samples or len(samples) % 2:
        raise ConfigError(
            f"Config {where}samples must map an even number of sample columns "
            f"(control replicates then ARID1A-deficient replicates), got {len(samples or {})}"
        )

    return ExperimentSchema(
        key=key,
        label=str(raw.get("label", key)),
        path=_resolve(_require(raw, "path", where), base_dir),
        columns={k: str(v) for k, v in columns.items()},
        samples={str(k): str(v) for k, v in samples.items()},
    )


def parse_config(raw: Dict[str, Any], base_dir: Union[str, Path] = ".") -> FigureConfig:
    """
    Build a FigureConfig from an already-parsed YAML mapping.

    Args:
        raw: Mapping as returned by yaml.safe_load
        base_dir: Directory that relative paths are resolved against

    Returns:
        FigureConfig

    Raises:
        ConfigError: If a required key is missing or an experiment reference is unknown
    """
    base_dir = Path(base_dir)
    if not isinstance(raw, dict):
        raise ConfigError("Config file must contain a mapping at the top level")

    experiments_raw = _require(raw, "experiments", "")
    experiments = {
        key: _parse_experiment(key, value, base_dir)
        for key, value in experiments_raw.items()
    }

    gsea_raw = _require(raw, "gsea", "")
    gene_sets = str(_require(gsea_raw, "gene_sets", "gsea."))
    # GMT files are resolved like any other path; library names pass through
    if gene_sets.endswith(".gmt"):
        gene_sets = str(_resolve(gene_sets, base_dir))
    gsea = GSEASettings(
        experiment=str(_require(gsea_raw, "experiment", "gsea.")),
        gene_sets=gene_sets,
        min_size=int(gsea_raw.get("min_size", 15)),
        max_size=int(gsea_raw.get("max_size", 500)),
        permutations=int(gsea_raw.get("permutations", 1000)),
        seed=int(gsea_raw.get("seed", 42)),
        top_n=int(gsea_raw.get("top_n", 5)),
    )

    venn_experiments = list(_require(_require(raw, "venn", ""), "experiments", "venn."))
    if len(venn_experiments) != 2:
        raise ConfigError(
            f"venn.experiments must name exactly 2 experiments, got {len(venn_experiments)}"
        )

    thresholds = raw.get("thresholds", {}) or {}
    output = raw.get("output", {}) or {}
    style = dict(DEFAULT_STYLE)
    style.update(raw.get("style", {}) or {})

    config = FigureConfig(
        experiments=experiments,
        gsea=gsea,
        venn_experiments=venn_experiments,
        output_dir=_resolve(output.get("directory", "figures"), base_dir),
        lfc_threshold=float(thresholds.get("lfc", DEFAULT_LFC_THRESHOLD)),
        padj_threshold=float(thresholds.get("padj", DEFAULT_PADJ_THRESHOLD)),
        padj_floor=float(thresholds.get("padj_floor", DEFAULT_PADJ_FLOOR)),
        gene_separator=str(raw.get("gene_separator", "|")),
        curated_genes=[str(g) for g in raw.get("curated_genes", []) or []],
        output_format=str(output.get("format", "png")),
        output_scale=int(output.get("scale", 3)),
        style=style,
    )

    for key in [gsea.experiment] + venn_experiments:
        config.experiment(key)

    return config


def load_config(config_path: Union[str, Path], output_dir: Optional[Union[str, Path]] = None) -> FigureConfig:
    """
    Load pipeline configuration from a YAML file.

    Args:
        config_path: Path to YAML config file
        output_dir: Optional override for output.directory

    Returns:
        FigureConfig with all relative paths resolved against the config file's directory
    """
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Pipeline config not found: {config_path}")

    with open(config_file, "r") as f:
        raw = yaml.safe_load(f)

    config = parse_config(raw, base_dir=config_file.parent)
    if output_dir is not None:
        config.output_dir = Path(output_dir)

    logger.info(
        "Loaded config %s: %d experiments, thresholds |log2FC| >= %s, padj <= %s",
        config_file, len(config.experiments), config.lfc_threshold, config.padj_threshold,
    )
    return config
