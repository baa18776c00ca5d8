"""Pandas DataFrame adapters for RFM segmentation."""

import logging
from pathlib import Path
from typing import List, Sequence, Tuple, Union

import pandas as pd  # type: ignore

from rfm_segmentation.analyses.segment_summary import SegmentSummary
from rfm_segmentation.foundation.column_mapping import ColumnMapping
from rfm_segmentation.foundation.rfm import RFMRecord
from rfm_segmentation.pipeline import run_rfm_analysis

logger = logging.getLogger(__name__)

RECORD_COLUMNS = [
    "customer_id",
    "customer_name",
    "salesperson",
    "recency",
    "last_purchase_date",
    "frequency",
    "monetary",
    "r_score",
    "f_score",
    "m_score",
    "rfm_score",
    "segment",
]

SUMMARY_COLUMNS = [
    "name",
    "count",
    "percentage",
    "avg_recency",
    "avg_frequency",
    "avg_monetary",
]


def records_to_dataframe(records: Sequence[RFMRecord]) -> pd.DataFrame:
    """Convert RFM records to a pandas DataFrame.

    Args:
        records: Sequence of RFMRecord objects

    Returns:
        DataFrame with one row per customer and the columns in
        RECORD_COLUMNS, in record order

    Example:
        >>> analysis = run_rfm_analysis(rows, mapping)
        >>> df = records_to_dataframe(analysis.records)
        >>> df[df["segment"] == "Champions"].head()
    """
    if not records:
        return pd.DataFrame(columns=RECORD_COLUMNS)

    rows = [
        {
            "customer_id": r.customer_id,
            "customer_name": r.customer_name,
            "salesperson": r.salesperson,
            "recency": r.recency,
            "last_purchase_date": r.last_purchase_date,
            "frequency": r.frequency,
            "monetary": r.monetary,
            "r_score": r.r_score,
            "f_score": r.f_score,
            "m_score": r.m_score,
            "rfm_score": r.rfm_score,
            "segment": r.segment,
        }
        for r in records
    ]
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def summaries_to_dataframe(summaries: Sequence[SegmentSummary]) -> pd.DataFrame:
    """Convert segment summaries to a pandas DataFrame (one row per segment)."""
    if not summaries:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    return pd.DataFrame(
        [
            {
                "name": s.name,
                "count": s.count,
                "percentage": s.percentage,
                "avg_recency": s.avg_recency,
                "avg_frequency": s.avg_frequency,
                "avg_monetary": s.avg_monetary,
            }
            for s in summaries
        ],
        columns=SUMMARY_COLUMNS,
    )


def dataframe_to_raw_rows(
    sales_df: pd.DataFrame, mapping: ColumnMapping
) -> List[dict]:
    """Convert a sales DataFrame to raw rows for the RFM engine.

    Args:
        sales_df: DataFrame with one row per transaction
        mapping: Column mapping; every mapped column must exist

    Returns:
        List of row dicts. NaN cells are turned into None so they are
        treated as empty.

    Raises:
        ValueError: If a mapped column is missing from the DataFrame
    """
    mapped = [
        column
        for column in (
            mapping.customer_id,
            mapping.order_date,
            mapping.order_value,
            mapping.customer_name,
            mapping.salesperson,
        )
        if column
    ]
    missing_cols = set(mapped) - set(sales_df.columns)
    if missing_cols:
        raise ValueError(f"DataFrame missing mapped columns: {missing_cols}")

    if sales_df.empty:
        return []

    subset = sales_df[list(dict.fromkeys(mapped))]
    return subset.astype(object).where(subset.notna(), None).to_dict("records")


def calculate_rfm_df(
    sales_df: pd.DataFrame, mapping: ColumnMapping
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Run the RFM segmentation on a sales DataFrame.

    Convenience function that combines conversion and calculation.

    Args:
        sales_df: DataFrame with one row per transaction
        mapping: Column mapping for the DataFrame

    Returns:
        Tuple of (records DataFrame, segment summary DataFrame)

    Example:
        >>> sales_df = pd.read_csv("sales.csv", sep=";", dtype=str)
        >>> mapping = ColumnMapping(customer_id="Codigo", order_date="Data",
        ...                         order_value="Valor")
        >>> records_df, summary_df = calculate_rfm_df(sales_df, mapping)
    """
    analysis = run_rfm_analysis(dataframe_to_raw_rows(sales_df, mapping), mapping)
    return (
        records_to_dataframe(analysis.records),
        summaries_to_dataframe(analysis.summaries),
    )


def detect_delimiter(header_line: str) -> str:
    """Return ";" when the header uses it, else ",".

    Semicolons are the norm for spreadsheets saved with a comma decimal
    separator.
    """
    return ";" if ";" in header_line else ","


def read_sales_csv(
    path: Union[str, Path], encoding: str = "utf-8"
) -> Tuple[List[dict], List[str]]:
    """Read a sales CSV export into raw rows and its header list.

    Every cell is read as a string (no type inference, so ``"1.234,56"`` and
    ``"05/03/2024"`` reach the parsers untouched). Blank lines are skipped,
    surrounding quotes and whitespace are stripped, and empty cells become
    empty strings. A line with more fields than the header keeps its first
    fields and drops the extras (with a warning) instead of failing the
    whole file; a short line gets empty strings for the missing cells.

    Args:
        path: CSV file path
        encoding: File encoding (default: utf-8)

    Returns:
        Tuple of (rows, headers)
    """
    path = Path(path)
    with path.open("r", encoding=encoding) as fh:
        header_line = ""
        for line in fh:
            if line.strip():
                header_line = line
                break
    if not header_line:
        return [], []

    sep = detect_delimiter(header_line)
    n_columns = len(pd.read_csv(path, sep=sep, nrows=0, encoding=encoding).columns)
    truncated = 0

    def _truncate_extra_fields(fields: List[str]) -> List[str]:
        nonlocal truncated
        truncated += 1
        return fields[:n_columns]

    df = pd.read_csv(
        path,
        sep=sep,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        skipinitialspace=True,
        encoding=encoding,
        engine="python",
        index_col=False,
        on_bad_lines=_truncate_extra_fields,
    )
    if truncated:
        logger.warning(
            f"{truncated} lines in {path.name} had more than {n_columns} fields; "
            "extra fields were dropped"
        )

    df = df.fillna("")
    df.columns = [str(column).strip().strip('"') for column in df.columns]
    for column in df.columns:
        df[column] = df[column].str.strip().str.strip('"')
    return df.to_dict("records"), list(df.columns)
