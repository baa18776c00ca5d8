"""RFM customer segmentation for transactional sales data."""

from rfm_segmentation.foundation.column_mapping import ColumnMapping
from rfm_segmentation.pipeline import RFMAnalysis, run_rfm_analysis

__version__ = "0.1.0"

__all__ = ["ColumnMapping", "RFMAnalysis", "run_rfm_analysis", "__version__"]
