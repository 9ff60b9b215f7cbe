"""Tests for GSEA ranking, result formatting and table shaping."""

import numpy as np
import pandas as pd
import pytest

from pathway_enrichment import (
    PathwayEnrichment,
    create_ranking_metric,
    format_gsea_results,
    load_gene_sets,
    shape_gsea_table,
)


class TestRankingMetric:
    def test_signed_significance(self, de_results_df):
        ranks = create_ranking_metric(de_results_df)
        assert ranks["A"] == pytest.approx(2.0)
        assert ranks["B"] == pytest.approx(-2.0)
        assert ranks["D"] == pytest.approx(10.0)

    def test_sorted_descending(self, de_results_df):
        ranks = create_ranking_metric(de_results_df)
        assert ranks.is_monotonic_decreasing
        assert ranks.index[0] == "D"

    def test_zero_padj_is_clamped(self, de_results_df):
        ranks = create_ranking_metric(de_results_df)
        assert np.isfinite(ranks["E"])
        assert ranks["E"] == pytest.approx(-300.0)

    def test_custom_floor(self, de_results_df):
        ranks = create_ranking_metric(de_results_df, padj_floor=1e-50)
        assert ranks["E"] == pytest.approx(-50.0)

    def test_missing_padj_dropped(self):
        df = pd.DataFrame({"gene": ["A", "B"], "log2FoldChange": [1.0, 1.0], "padj": [0.01, np.nan]})
        ranks = create_ranking_metric(df)
        assert ranks.index.tolist() == ["A"]

    def test_duplicate_genes_keep_highest(self):
        df = pd.DataFrame({"gene": ["A", "A", "B"], "log2FoldChange": [-1.0, 1.0, 1.0], "padj": [0.01, 0.1, 0.5]})
        ranks = create_ranking_metric(df)
        assert ranks.index.is_unique
        assert ranks["A"] == pytest.approx(1.0)

    def test_ties_keep_input_order(self):
        df = pd.DataFrame({"gene": ["X", "Y", "Z"], "log2FoldChange": [1.0, 2.0, 3.0], "padj": [0.01] * 3})
        assert create_ranking_metric(df).index.tolist() == ["X", "Y", "Z"]


class TestFormatGseaResults:
    def test_gseapy_layout(self, mock_gseapy):
        result = format_gsea_results(mock_gseapy.prerank.return_value.res2d)
        assert list(result.columns) == ["Term", "NES", "padj", "gene_count", "set_size"]
        assert result["gene_count"].tolist() == [10, 6, 8, 1]
        assert result["set_size"].tolist() == [40, 30, 20, 15]
        assert result["padj"].tolist() == [0.01, 0.04, 0.02, 1.0]

    def test_cluster_profiler_layout(self):
        res = pd.DataFrame({
            "Description": ["P1", "P2"],
            "NES": [1.5, -1.2],
            "p.adjust": [0.01, 0.03],
            "setSize": [40, 25],
            "core_enrichment": ["A/B/C", "D"],
        })
        result = format_gsea_results(res)
        assert result["Term"].tolist() == ["P1", "P2"]
        assert result["gene_count"].tolist() == [3, 1]
        assert result["set_size"].tolist() == [40, 25]

    def test_empty(self):
        assert format_gsea_results(pd.DataFrame()).empty

    def test_missing_nes_raises(self):
        with pytest.raises(ValueError, match="NES"):
            format_gsea_results(pd.DataFrame({"Term": ["P"], "FDR q-val": [0.1]}))


class TestShapeGseaTable:
    def test_row_count(self, gsea_results_df):
        shaped = shape_gsea_table(gsea_results_df)
        # 7 positive, 5 negative
        assert len(shaped) == 5 + 5

    def test_sorted_descending(self, gsea_results_df):
        shaped = shape_gsea_table(gsea_results_df)
        assert shaped["NES"].is_monotonic_decreasing

    def test_keeps_extremes(self, gsea_results_df):
        shaped = shape_gsea_table(gsea_results_df)
        assert shaped["NES"].tolist() == [2.1, 1.9, 1.9, 1.5, 1.2, -0.8, -1.0, -1.4, -1.8, -2.2]

    def test_excludes_zero_nes(self, gsea_results_df):
        shaped = shape_gsea_table(gsea_results_df, top_n=20)
        assert (shaped["NES"] != 0).all()
        assert len(shaped) == 12

    def test_gene_ratio(self, gsea_results_df):
        shaped = shape_gsea_table(gsea_results_df)
        assert shaped.loc[0, "GeneRatio"] == pytest.approx(10 / 50)

    def test_ties_keep_original_order(self, gsea_results_df):
        shaped = shape_gsea_table(gsea_results_df)
        tied = shaped[shaped["NES"] == 1.9]["Term"].tolist()
        assert tied == ["HALLMARK_PATHWAY_1", "HALLMARK_PATHWAY_2"]

    def test_fewer_negatives_than_top_n(self, gsea_results_df):
        df = gsea_results_df[gsea_results_df["NES"] >= -1.0]
        shaped = shape_gsea_table(df)
        assert len(shaped) == 5 + 2

    def test_does_not_modify_input(self, gsea_results_df):
        before = gsea_results_df.copy()
        shape_gsea_table(gsea_results_df)
        pd.testing.assert_frame_equal(gsea_results_df, before)

    def test_empty(self):
        assert shape_gsea_table(pd.DataFrame()).empty


class TestPathwayEnrichment:
    def test_run_gsea_calls_prerank(self, mock_gseapy, de_results_df):
        pe = PathwayEnrichment()
        ranks = pe.create_ranking_metric(de_results_df)
        gene_sets = {"HALLMARK_UP_1": ["A", "D"]}
        result = pe.run_gsea(ranks, gene_sets, min_size=1, permutations=10)

        mock_gseapy.prerank.assert_called_once()
        kwargs = mock_gseapy.prerank.call_args.kwargs
        assert kwargs["gene_sets"] == gene_sets
        assert kwargs["min_size"] == 1
        assert kwargs["permutation_num"] == 10
        assert kwargs["rnk"].index[0] == "D"
        assert len(result) == 4

    def test_run_gsea_empty_ranks_raises(self, mock_gseapy):
        with pytest.raises(ValueError, match="empty"):
            PathwayEnrichment().run_gsea(pd.Series(dtype=float), {"P": ["A"]})
        mock_gseapy.prerank.assert_not_called()

    def test_enrichment_table(self, mock_gseapy, de_results_df):
        shaped = PathwayEnrichment().enrichment_table(de_results_df, {"P": ["A"]}, top_n=5)
        assert shaped["Term"].tolist() == ["HALLMARK_UP_1", "HALLMARK_UP_2", "HALLMARK_DOWN_1"]
        assert shaped.loc[0, "GeneRatio"] == pytest.approx(0.25)

    def test_load_gene_sets_gmt(self, mock_gseapy):
        gene_sets = load_gene_sets("hallmark.gmt")
        mock_gseapy.read_gmt.assert_called_once_with("hallmark.gmt")
        assert "HALLMARK_UP_1" in gene_sets

    def test_load_gene_sets_library_name_passthrough(self, mock_gseapy):
        assert load_gene_sets("MSigDB_Hallmark_2020") == "MSigDB_Hallmark_2020"
        mock_gseapy.read_gmt.assert_not_called()
