"""
Static image export for pipeline figures.

Plotly figures are written with kaleido (fig.write_image); matplotlib figures
with savefig, after which they are closed.
"""

from pathlib import Path
from typing import Dict, Union
import logging
import re
import matplotlib.pyplot as plt
from matplotlib.figure import Figure as MplFigure
import plotly.graph_objects as go

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("png", "svg", "pdf", "jpg", "jpeg", "webp")

AnyFigure = Union[go.Figure, MplFigure]


class ExportEngine:
    """Writes figures to an output directory as static images."""

    def __init__(self, output_dir: Union[str, Path], format: str = "png", scale: int = 3):
        if format not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported image format '{format}'. Supported: {', '.join(SUPPORTED_FORMATS)}"
            )
        self.output_dir = Path(output_dir)
        self.format = format
        self.scale = scale

    @staticmethod
    def sanitize_filename(name: str) -> str:
        """
        Make a figure name safe for use as a file name.

        >>> ExportEngine.sanitize_filename("heatmap ARID1A KO")
        'heatmap_ARID1A_KO'
        """
        sanitized = re.sub(r"[^A-Za-z0-9_.-]+", "_", name).strip("_.")
        return sanitized or "figure"

    def export_figure(self, fig: AnyFigure, name: str) -> Path:
        """
        Export one figure to <output_dir>/<name>.<format>.

        Args:
            fig: Plotly Figure or matplotlib Figure
            name: Figure name (sanitized for the file name)

        Returns:
            Path of the written file

        Notes:
            scale=3 with plotly's default 700x500 gives 2100x1500 pixels,
            roughly 300 DPI at 7x5 inches; matplotlib figures use dpi=300.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.output_dir / f"{self.sanitize_filename(name)}.{self.format}"

        if isinstance(fig, go.Figure):
            fig.write_image(str(filepath), format=self.format, scale=self.scale)
        elif isinstance(fig, MplFigure):
            try:
                fig.savefig(filepath, format=self.format, dpi=100 * self.scale, bbox_inches="tight")
            finally:
                plt.close(fig)
        else:
            raise TypeError(f"Cannot export object of type {type(fig).__name__} as an image")

        logger.info("Wrote %s", filepath)
        return filepath

    def export_all(self, figures: Dict[str, AnyFigure]) -> Dict[str, Path]:
        """Export every figure; returns name → written path."""
        return {name: self.export_figure(fig, name) for name, fig in figures.items()}
