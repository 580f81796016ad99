"""Write per-record conversion results to disk."""

from __future__ import annotations

import json
from pathlib import Path

import pyarrow as pa
import pyarrow.csv as pa_csv
import pyarrow.parquet as pq

from typeswitch.conversion.engine import ConversionReport

REPORT_SCHEMA = pa.schema(
    [
        ("record_id", pa.int64()),
        ("title", pa.string()),
        ("outcome", pa.string()),
        ("removed_taxonomies", pa.string()),
    ]
)


def report_table(report: ConversionReport) -> pa.Table:
    """Build an Arrow table with one row per record in the snapshot."""
    return pa.Table.from_pylist([r.to_row() for r in report.results], schema=REPORT_SCHEMA)


def write_report(report: ConversionReport, path: str | Path) -> Path:
    """Write results as Parquet, CSV or JSON depending on the file suffix.

    Args:
        report: Finished conversion report.
        path: Output file; ``.parquet`` and ``.csv`` are tabular, anything
            else gets a JSON document with the summary counts.

    Returns:
        The path written.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".parquet":
        pq.write_table(report_table(report), path)
    elif suffix == ".csv":
        pa_csv.write_csv(report_table(report), path)
    else:
        document = {
            "from_type": report.from_type,
            "to_type": report.to_type,
            "dry_run": report.dry_run,
            "total_selected": report.total_selected,
            "converted_count": report.converted_count,
            "error_count": report.error_count,
            "results": [r.to_row() for r in report.results],
        }
        path.write_text(json.dumps(document, indent=2))
    return path
