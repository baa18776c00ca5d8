"""Command line entry point for RFM segmentation."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from rfm_segmentation.exports import (
    export_markdown_report,
    export_records_csv,
    export_summary_json,
)
from rfm_segmentation.foundation.column_mapping import (
    ColumnMapping,
    detect_column_mapping,
    missing_required_columns,
)
from rfm_segmentation.observability import configure_logging
from rfm_segmentation.pandas.rfm import read_sales_csv
from rfm_segmentation.pipeline import run_rfm_analysis
from rfm_segmentation.services.insights import (
    InsightsConfig,
    InsightsError,
    InsightsGenerator,
)

logger = logging.getLogger(__name__)


MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM


def _load_rows(path: Path) -> tuple[list[dict], list[str]]:
    resolved = path.resolve()
    size = resolved.stat().st_size
    if size > MAX_INPUT_BYTES:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {MAX_INPUT_BYTES} bytes"
        )
    return read_sales_csv(resolved)


def _resolve_mapping(
    headers: list[str], args: argparse.Namespace
) -> Optional[ColumnMapping]:
    detected = detect_column_mapping(headers)
    overrides = {
        "customer_id": args.customer_id,
        "customer_name": args.customer_name,
        "salesperson": args.salesperson,
        "order_date": args.order_date,
        "order_value": args.order_value,
    }
    for field_name, column in overrides.items():
        if column:
            if column not in headers:
                logger.error(f"Column {column!r} for {field_name} not found in input")
                return None
            detected[field_name] = column

    missing = missing_required_columns(detected)
    if missing:
        logger.error(
            f"Could not map required columns {missing}; "
            f"available columns: {headers}"
        )
        return None

    try:
        return ColumnMapping(**detected)
    except ValidationError as exc:
        logger.error(f"Invalid column mapping: {exc}")
        return None


def run_rfm_cli(argv: list[str] | None = None) -> int:
    """Segment customers from a sales CSV export and write the results.

    Writes three files into the output directory:
    - rfm_records.csv: one row per customer with scores and segment
    - rfm_summary.json: customer-base overview and per-segment summaries
    - rfm_report.md: Markdown report, with an AI narrative when --insights

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="RFM customer segmentation from a sales CSV export"
    )
    parser.add_argument("input", type=Path, help="Path to the sales CSV file")
    parser.add_argument("--customer-id", help="Customer id column (auto-detected)")
    parser.add_argument("--customer-name", help="Customer name column (auto-detected)")
    parser.add_argument("--salesperson", help="Salesperson column (auto-detected)")
    parser.add_argument("--order-date", help="Order date column (auto-detected)")
    parser.add_argument("--order-value", help="Order value column (auto-detected)")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("rfm_output"),
        help="Directory for the generated files (default: rfm_output)",
    )
    parser.add_argument(
        "--insights",
        action="store_true",
        help="Add an AI narrative to the report (needs ANTHROPIC_API_KEY)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit structured logs as JSON"
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level, json_logs=args.json_logs)

    logger.info(f"Loading sales rows from {args.input}")
    rows, headers = _load_rows(args.input)
    if not rows:
        logger.error("No rows found in input file")
        return 1

    mapping = _resolve_mapping(headers, args)
    if mapping is None:
        return 1
    logger.info(
        f"Column mapping: id={mapping.customer_id!r}, name={mapping.customer_name!r}, "
        f"date={mapping.order_date!r}, value={mapping.order_value!r}, "
        f"salesperson={mapping.salesperson!r}"
    )

    analysis = run_rfm_analysis(rows, mapping)
    if not analysis.records:
        logger.error("No customers with valid transactions found")
        return 1

    insights = None
    if args.insights:
        try:
            generator = InsightsGenerator(InsightsConfig())
            insights = asyncio.run(generator.generate(analysis.summaries))
        except (InsightsError, ValueError) as exc:
            logger.warning(f"Continuing without insights: {exc}")

    output_dir = args.output_dir
    export_records_csv(analysis, output_dir / "rfm_records.csv")
    export_summary_json(
        analysis, output_dir / "rfm_summary.json", metadata={"source": args.input.name}
    )
    export_markdown_report(analysis, output_dir / "rfm_report.md", insights=insights)

    logger.info(
        f"Segmented {analysis.total_customers} customers into "
        f"{len(analysis.summaries)} segments; results in {output_dir}"
    )
    return 0


def main() -> None:
    raise SystemExit(run_rfm_cli())


if __name__ == "__main__":  # pragma: no cover
    main()
