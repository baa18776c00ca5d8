"""Tests for segment summaries, the base overview, the RF grid and filtering."""

from datetime import date

import pytest

from rfm_segmentation.analyses.segment_summary import (
    CustomerBaseOverview,
    SegmentSummary,
    build_rf_grid,
    filter_records,
    summarize_customer_base,
    summarize_segments,
)
from rfm_segmentation.foundation.rfm import RFMRecord
from rfm_segmentation.foundation.segments import assign_segment

REFERENCE = date(2024, 6, 30)


def make_record(customer_id, r, f, m=3, recency=10, frequency=2, monetary=100.0,
                name=None, segment=None):
    return RFMRecord(
        customer_id=customer_id,
        customer_name=name or f"Customer {customer_id}",
        salesperson="N/A",
        recency=recency,
        last_purchase_date=REFERENCE,
        frequency=frequency,
        monetary=monetary,
        r_score=r,
        f_score=f,
        m_score=m,
        rfm_score=f"{r}{f}{m}",
        segment=segment or assign_segment(r, f),
    )


@pytest.fixture
def records():
    return [
        make_record("1", 5, 5, recency=0, frequency=10, monetary=1000.0, name="Ana Silva"),
        make_record("2", 4, 4, recency=4, frequency=8, monetary=600.0, name="Bruno Costa"),
        make_record("3", 1, 1, recency=200, frequency=1, monetary=20.0, name="Carla Lima"),
        make_record("4", 2, 4, recency=90, frequency=6, monetary=450.0, name="Diego Souza"),
    ]


class TestSegmentSummary:
    """Test SegmentSummary validation."""

    def test_zero_count_raises(self):
        with pytest.raises(ValueError, match="Segment count must be positive"):
            SegmentSummary("Champions", 0, 0.0, 0.0, 0.0, 0.0)

    def test_percentage_out_of_range_raises(self):
        with pytest.raises(ValueError, match="Segment percentage must be 0-100"):
            SegmentSummary("Champions", 1, 100.5, 0.0, 1.0, 1.0)


class TestSummarizeSegments:
    """Test summarize_segments."""

    def test_counts_and_averages(self, records):
        summaries = summarize_segments(records)

        assert [s.name for s in summaries] == ["Champions", "At Risk", "Hibernating"]
        champions = summaries[0]
        assert champions.count == 2
        assert champions.percentage == pytest.approx(50.0)
        assert champions.avg_recency == pytest.approx(2.0)
        assert champions.avg_frequency == pytest.approx(9.0)
        assert champions.avg_monetary == pytest.approx(800.0)

    def test_counts_sum_to_total(self, records):
        summaries = summarize_segments(records)
        assert sum(s.count for s in summaries) == len(records)
        assert sum(s.percentage for s in summaries) == pytest.approx(100.0)

    def test_only_observed_segments_listed(self, records):
        names = {s.name for s in summarize_segments(records)}
        assert "Lost" not in names
        assert all(s.count > 0 for s in summarize_segments(records))

    def test_canonical_order_regardless_of_input_order(self, records):
        forward = [s.name for s in summarize_segments(records)]
        backward = [s.name for s in summarize_segments(list(reversed(records)))]
        assert forward == backward

    def test_percentages_of_three(self):
        records = [make_record(str(i), 5, 5) for i in range(3)]
        records.append(make_record("x", 1, 1))
        records.append(make_record("y", 1, 1))
        records.append(make_record("z", 3, 1))
        summaries = summarize_segments(records)
        assert sum(s.percentage for s in summaries) == pytest.approx(100.0)

    def test_empty(self):
        assert summarize_segments([]) == []


class TestSummarizeCustomerBase:
    """Test summarize_customer_base."""

    def test_overview(self, records):
        overview = summarize_customer_base(records)
        assert overview.total_customers == 4
        assert overview.total_revenue == pytest.approx(2070.0)
        assert overview.avg_frequency == pytest.approx(6.25)
        assert overview.avg_recency == pytest.approx(73.5)

    def test_empty_yields_zeros(self):
        assert summarize_customer_base([]) == CustomerBaseOverview(0, 0.0, 0.0, 0.0)


class TestBuildRFGrid:
    """Test build_rf_grid."""

    def test_grid_shape_and_orientation(self, records):
        grid = build_rf_grid(records)
        assert len(grid) == 5
        assert all(len(row) == 5 for row in grid)
        assert [row[0].f_score for row in grid] == [5, 4, 3, 2, 1]
        assert [cell.r_score for cell in grid[0]] == [1, 2, 3, 4, 5]

    def test_cell_counts_and_segments(self, records):
        grid = build_rf_grid(records)
        cells = {(c.r_score, c.f_score): c for row in grid for c in row}

        assert cells[(5, 5)].count == 1
        assert cells[(5, 5)].segment == "Champions"
        assert cells[(2, 4)].segment == "At Risk"
        assert cells[(1, 1)].segment == "Hibernating"
        assert sum(c.count for c in cells.values()) == len(records)

    def test_empty_cells_report_lost(self, records):
        grid = build_rf_grid(records)
        cells = {(c.r_score, c.f_score): c for row in grid for c in row}
        assert cells[(3, 3)].count == 0
        assert cells[(3, 3)].segment == "Lost"

    def test_tie_goes_to_canonical_order(self):
        records = [
            make_record("1", 5, 5, segment="Lost"),
            make_record("2", 5, 5, segment="Champions"),
        ]
        cells = {(c.r_score, c.f_score): c for row in build_rf_grid(records) for c in row}
        assert cells[(5, 5)].segment == "Champions"
        assert cells[(5, 5)].count == 2


class TestFilterRecords:
    """Test filter_records."""

    def test_no_filters_returns_all(self, records):
        assert filter_records(records) == records

    def test_search_by_name_case_insensitive(self, records):
        result = filter_records(records, search="  silva ")
        assert [r.customer_id for r in result] == ["1"]

    def test_search_by_id(self, records):
        result = filter_records(records, search="3")
        assert [r.customer_id for r in result] == ["3"]

    def test_segment_filter(self, records):
        result = filter_records(records, segment="Champions")
        assert [r.customer_id for r in result] == ["1", "2"]

    def test_search_and_segment_combined(self, records):
        assert filter_records(records, search="bruno", segment="Champions")[0].customer_id == "2"
        assert filter_records(records, search="bruno", segment="At Risk") == []

    def test_empty_segment_means_all(self, records):
        assert len(filter_records(records, segment="")) == 4
