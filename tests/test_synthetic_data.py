"""Tests for the synthetic sales generator."""

from datetime import date

import pytest

from rfm_segmentation.foundation.column_mapping import ColumnMapping, detect_column_mapping
from rfm_segmentation.foundation.parsing import parse_date, parse_value
from rfm_segmentation.synthetic import SalesScenario, generate_sales_rows

START = date(2023, 1, 1)
END = date(2023, 12, 31)
COLUMNS = ["Codigo", "Nome", "Vendedor", "Data Emissao", "Valor Bruto"]


class TestGenerateSalesRows:
    """Test generate_sales_rows."""

    def test_row_shape(self):
        rows = generate_sales_rows(50, START, END, seed=1)
        assert rows
        assert all(list(row) == COLUMNS for row in rows)
        assert {row["Codigo"] for row in rows} == {str(1000 + i) for i in range(50)}

    def test_headers_are_detected(self):
        rows = generate_sales_rows(5, START, END, seed=1)
        mapping = ColumnMapping(**detect_column_mapping(list(rows[0])))
        assert mapping.customer_id == "Codigo"
        assert mapping.salesperson == "Vendedor"

    def test_dates_and_values_parse(self):
        rows = generate_sales_rows(100, START, END, seed=2)
        for row in rows:
            order_date = parse_date(row["Data Emissao"])
            assert START <= order_date <= END
            assert row["Valor Bruto"].startswith("R$ ")
            assert parse_value(row["Valor Bruto"]) > 0

    def test_iso_and_plain_formats(self):
        rows = generate_sales_rows(10, START, END, seed=3, date_format="iso", value_format="plain")
        assert date.fromisoformat(rows[0]["Data Emissao"])
        assert float(rows[0]["Valor Bruto"]) > 0

    def test_reproducible_with_seed(self):
        assert generate_sales_rows(30, START, END, seed=9) == generate_sales_rows(
            30, START, END, seed=9
        )

    def test_consistent_customer_attributes(self):
        rows = generate_sales_rows(40, START, END, seed=4)
        names = {}
        for row in rows:
            assert names.setdefault(row["Codigo"], (row["Nome"], row["Vendedor"])) == (
                row["Nome"],
                row["Vendedor"],
            )

    def test_invalid_rows(self):
        clean = generate_sales_rows(200, START, END, seed=5)
        dirty = generate_sales_rows(
            200, START, END, seed=5, scenario=SalesScenario(invalid_row_rate=0.1)
        )
        assert len(dirty) == len(clean) + int(len(clean) * 0.1)
        assert any(row["Data Emissao"] == "sem data" for row in dirty)
        assert any(row["Codigo"] == "" for row in dirty)

    def test_salespeople_pool(self):
        rows = generate_sales_rows(
            300, START, END, seed=6, scenario=SalesScenario(n_salespeople=2)
        )
        assert {row["Vendedor"] for row in rows} == {"Rep 1", "Rep 2"}

    def test_zero_customers(self):
        assert generate_sales_rows(0, START, END) == []

    def test_start_after_end_raises(self):
        with pytest.raises(ValueError, match="start date must be <= end date"):
            generate_sales_rows(10, END, START)

    @pytest.mark.slow
    def test_mean_orders_roughly_respected(self):
        rows = generate_sales_rows(
            5000, START, END, seed=7, scenario=SalesScenario(mean_orders=3.0)
        )
        assert 2.5 < len(rows) / 5000 < 3.5
