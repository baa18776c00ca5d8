"""Pandas DataFrame adapters for RFM segmentation components."""

from .rfm import (
    calculate_rfm_df,
    dataframe_to_raw_rows,
    detect_delimiter,
    read_sales_csv,
    records_to_dataframe,
    summaries_to_dataframe,
)

__all__ = [
    # Conversions
    "records_to_dataframe",
    "summaries_to_dataframe",
    "dataframe_to_raw_rows",
    # End-to-end
    "calculate_rfm_df",
    # CSV ingestion
    "detect_delimiter",
    "read_sales_csv",
]
