"""Synthetic sales data generation.

Produces realistic-but-fake sales exports to exercise the RFM pipeline
without accessing production data.
"""

from .generator import SalesScenario, generate_sales_rows

__all__ = ["SalesScenario", "generate_sales_rows"]
