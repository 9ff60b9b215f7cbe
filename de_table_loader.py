"""
Differential-expression table loader.

Reads pre-computed DE tables (tab-delimited, one row per gene) and maps them onto
a canonical layout using an explicit per-experiment column mapping:

    gene | log2FoldChange | padj | <sample columns...>

Column positions are never relied on; input files from different experiments
name their columns differently.
"""

from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging
import pandas as pd

from figure_config import ExperimentSchema

logger = logging.getLogger(__name__)

NUMERIC_COLUMNS = ["log2FoldChange", "padj"]


class DETableValidationError(Exception):
    """Raised when a DE table fails validation checks."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        super().__init__(self.message)


class SchemaMismatchError(DETableValidationError):
    """Raised when a mapped column is absent from the input file."""


class MissingInputFileError(FileNotFoundError):
    """Raised when a DE input file does not exist or cannot be opened."""


@dataclass
class DETable:
    """A loaded DE table in canonical layout.

    results_df columns: gene, log2FoldChange, padj, then one column per sample
    (canonical sample names, in the order given by the schema).
    """

    label: str
    results_df: pd.DataFrame
    sample_columns: List[str]
    n_filled_lfc: int = 0
    warnings: List[str] = field(default_factory=list)

    @property
    def n_genes(self) -> int:
        return len(self.results_df)


def truncate_gene_name(annotation: Any, separator: str = "|") -> Any:
    """
    Keep the part of an annotation before the first separator.

    >>> truncate_gene_name("ARID1A|chr1|exon")
    'ARID1A'
    """
    if pd.isna(annotation):
        return annotation
    return str(annotation).split(separator, 1)[0].strip()


def read_de_file(file_path: Union[str, PathLike]) -> pd.DataFrame:
    """
    Read a tab-delimited DE table.

    Raises:
        MissingInputFileError: If the file is absent or unreadable
        DETableValidationError: If the file is empty or cannot be parsed
    """
    path = Path(file_path)
    if not path.is_file():
        raise MissingInputFileError(
            f"DE input file not found: {path}. "
            f"Suggestion: Check the 'path' entry for this experiment in the config file."
        )

    try:
        df = pd.read_csv(path, sep="\t")
    except pd.errors.EmptyDataError:
        raise DETableValidationError(
            f"DE input file is empty: {path}. "
            f"Ensure the file has a header row and one row per gene.",
            details={"path": str(path)},
        )
    except pd.errors.ParserError as e:
        raise DETableValidationError(
            f"Failed to parse DE input file {path}: {str(e)}. "
            f"Suggestion: Verify the file is tab-delimited.",
            details={"path": str(path)},
        )
    except OSError as e:
        raise MissingInputFileError(f"DE input file unreadable: {path}: {e}") from e

    return df


def apply_schema(
    raw_df: pd.DataFrame,
    schema: ExperimentSchema,
    separator: str = "|",
) -> DETable:
    """
    Map a raw DE table onto canonical columns using an explicit schema.

    Args:
        raw_df: Table as read from disk
        schema: Column mapping for this experiment
        separator: Gene annotation separator; everything after it is discarded

    Returns:
        DETable in canonical layout. The input frame is not modified.

    Raises:
        SchemaMismatchError: If a mapped column is not present in raw_df
    """
    rename_map = {
        schema.columns["annotation"]: "gene",
        schema.columns["log2FoldChange"]: "log2FoldChange",
        schema.columns["padj"]: "padj",
    }
    rename_map.update({source: sample for sample, source in schema.samples.items()})

    missing = [col for col in rename_map if col not in raw_df.columns]
    if missing:
        available_str = ", ".join(str(c) for c in raw_df.columns.tolist()[:10])
        extra = f"... ({len(raw_df.columns) - 10} more)" if len(raw_df.columns) > 10 else ""
        raise SchemaMismatchError(
            f"{schema.label} ({schema.path}): missing required column(s): {', '.join(missing)}. "
            f"Found columns: {available_str}{extra}. "
            f"Suggestion: Fix the column mapping for experiment '{schema.key}' in the config file.",
            details={"missing": missing, "path": str(schema.path), "experiment": schema.key},
        )

    sample_columns = list(schema.samples.keys())
    df = raw_df[list(rename_map)].rename(columns=rename_map)
    df = df[["gene", "log2FoldChange", "padj"] + sample_columns].copy()

    df["gene"] = df["gene"].map(lambda a: truncate_gene_name(a, separator))

    for col in NUMERIC_COLUMNS + sample_columns:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    warnings = []

    n_missing_lfc = int(df["log2FoldChange"].isna().sum())
    if n_missing_lfc:
        df["log2FoldChange"] = df["log2FoldChange"].fillna(0.0)
        msg = f"{n_missing_lfc} genes with missing log2FoldChange set to 0"
        warnings.append(msg)
        logger.warning("%s: %s", schema.label, msg)

    missing_counts = df[sample_columns].isna()
    n_missing_counts = int(missing_counts.values.sum())
    if n_missing_counts:
        n_rows = int(missing_counts.any(axis=1).sum())
        msg = f"{n_missing_counts} missing or non-numeric sample counts in {n_rows} genes (left as NaN)"
        warnings.append(msg)
        logger.warning("%s: %s", schema.label, msg)

    n_missing_padj = int(df["padj"].isna().sum())
    if n_missing_padj:
        msg = f"{n_missing_padj} genes with missing padj (left unclassifiable)"
        warnings.append(msg)
        logger.warning("%s: %s", schema.label, msg)

    n_duplicated = int(df["gene"].duplicated().sum())
    if n_duplicated:
        msg = f"{n_duplicated} duplicate gene names after truncation (rows kept)"
        warnings.append(msg)
        logger.warning("%s: %s", schema.label, msg)

    df = df.reset_index(drop=True)

    return DETable(
        label=schema.label,
        results_df=df,
        sample_columns=sample_columns,
        n_filled_lfc=n_missing_lfc,
        warnings=warnings,
    )


def load_de_table(schema: ExperimentSchema, separator: str = "|") -> DETable:
    """
    Load one experiment's DE table from disk.

    Args:
        schema: Path and column mapping for the experiment
        separator: Gene annotation separator

    Returns:
        DETable in canonical layout
    """
    raw_df = read_de_file(schema.path)
    table = apply_schema(raw_df, schema, separator=separator)
    logger.info("Loaded %s: %d genes from %s", schema.label, table.n_genes, schema.path)
    return table
