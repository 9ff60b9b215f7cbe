"""
Pytest configuration and fixtures for the ARID1A figure pipeline tests.
"""

from pathlib import Path
from unittest.mock import MagicMock
import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import plotly.graph_objects as go
import pytest

from figure_config import ExperimentSchema


# ============================================================================
# DE Table Fixtures
# ============================================================================


SAMPLE_MAP = {
    "Control_Rep1": "ctrl_1",
    "Control_Rep2": "ctrl_2",
    "ARID1A_Rep1": "arid1a_1",
    "ARID1A_Rep2": "arid1a_2",
}

COLUMN_MAP = {
    "annotation": "Annotation/Divergence",
    "log2FoldChange": "Log2 Fold Change",
    "padj": "adj. p-value",
}


@pytest.fixture
def experiment_schema(tmp_path):
    """Schema pointing at tmp_path/experiment.txt (file written by raw_de_file)."""
    return ExperimentSchema(
        key="knockout",
        label="ARID1A KO",
        path=tmp_path / "experiment.txt",
        columns=dict(COLUMN_MAP),
        samples=dict(SAMPLE_MAP),
    )


@pytest.fixture
def raw_de_df():
    """
    Raw DE table in the input layout.

    A: up, B: down, C: not significant, D: up (large counts), E: missing lfc,
    F: missing padj, G: zero-variance counts but significant.
    """
    return pd.DataFrame(
        {
            "Annotation/Divergence": [
                "A|chr1|protein-coding",
                "B|chr2|protein-coding",
                "C|chr3|protein-coding",
                "D|chr4|protein-coding",
                "E|chr5|protein-coding",
                "F|chr6|protein-coding",
                "G|chr7|protein-coding",
            ],
            "Log2 Fold Change": [1.0, -1.0, 0.1, 2.5, np.nan, 3.0, 1.2],
            "adj. p-value": [0.01, 0.01, 0.5, 1e-10, 0.001, np.nan, 0.02],
            "ctrl_1": [10, 100, 50, 5, 20, 10, 30],
            "ctrl_2": [12, 110, 55, 6, 22, 12, 30],
            "arid1a_1": [25, 40, 52, 40, 21, 90, 30],
            "arid1a_2": [27, 45, 49, 45, 19, 95, 30],
            "Chr": ["chr1", "chr2", "chr3", "chr4", "chr5", "chr6", "chr7"],
        }
    )


@pytest.fixture
def raw_de_file(experiment_schema, raw_de_df):
    raw_de_df.to_csv(experiment_schema.path, sep="\t", index=False)
    return experiment_schema.path


@pytest.fixture
def de_results_df():
    """Canonical DE results (gene, log2FoldChange, padj)."""
    return pd.DataFrame(
        {
            "gene": ["A", "B", "C", "D", "E"],
            "log2FoldChange": [1.0, -1.0, 0.1, 2.5, -3.0],
            "padj": [0.01, 0.01, 0.5, 1e-10, 0.0],
        }
    )


@pytest.fixture
def gsea_results_df():
    """Standardized GSEA results: 7 positive, 5 negative, 1 zero NES."""
    nes = [2.1, 1.9, 1.9, 1.5, 1.2, 1.1, 0.9, 0.0, -0.8, -1.0, -1.4, -1.8, -2.2]
    return pd.DataFrame(
        {
            "Term": [f"HALLMARK_PATHWAY_{i}" for i in range(len(nes))],
            "NES": nes,
            "padj": np.linspace(0.001, 0.2, len(nes)),
            "gene_count": [10, 8, 12, 5, 6, 7, 3, 4, 9, 11, 2, 6, 15],
            "set_size": [50, 40, 60, 25, 30, 35, 30, 20, 45, 55, 20, 30, 75],
        }
    )


# ============================================================================
# External API Mocking Fixtures
# ============================================================================


@pytest.fixture
def mock_gseapy(monkeypatch):
    """Mock gseapy module so GSEA runs offline and instantly."""
    mock_gp = MagicMock()

    mock_gsea_result = MagicMock()
    mock_gsea_result.res2d = pd.DataFrame(
        {
            "Name": ["prerank"] * 4,
            "Term": ["HALLMARK_UP_1", "HALLMARK_UP_2", "HALLMARK_DOWN_1", "HALLMARK_FLAT"],
            "ES": [0.6, 0.4, -0.5, 0.0],
            "NES": [2.0, 1.5, -1.8, 0.0],
            "NOM p-val": [0.001, 0.01, 0.002, 1.0],
            "FDR q-val": [0.01, 0.04, 0.02, 1.0],
            "FWER p-val": [0.01, 0.05, 0.03, 1.0],
            "Tag %": ["10/40", "6/30", "8/20", "1/15"],
            "Gene %": ["12%", "9%", "10%", "1%"],
            "Lead_genes": ["A;D", "D", "B", "C"],
        }
    )
    mock_gp.prerank = MagicMock(return_value=mock_gsea_result)
    mock_gp.read_gmt = MagicMock(
        return_value={"HALLMARK_UP_1": ["A", "D"], "HALLMARK_DOWN_1": ["B"]}
    )

    monkeypatch.setattr("pathway_enrichment.gp", mock_gp)
    return mock_gp


@pytest.fixture
def mock_write_image(monkeypatch):
    """Replace plotly's kaleido export with a stub that writes a placeholder file.

    Returns the list of (path, format, scale) calls.
    """
    calls = []

    def fake_write_image(self, file, format=None, scale=None, **kwargs):
        calls.append((file, format, scale))
        Path(file).write_bytes(b"\x89PNG placeholder")

    monkeypatch.setattr(go.Figure, "write_image", fake_write_image)
    return calls
