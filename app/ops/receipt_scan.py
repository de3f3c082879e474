from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pydantic import TypeAdapter

from app.salecalc.core.config import settings
from app.salecalc.schemas.receipts import ReceiptReport
from app.salecalc.schemas.sales import PersistedSale
from app.salecalc.services.receipts import generate_receipt_report

_SALES_ADAPTER = TypeAdapter(list[PersistedSale])


def load_sales(path: Path) -> list[PersistedSale]:
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".jsonl":
        rows = [json.loads(line) for line in text.splitlines() if line.strip()]
    else:
        rows = json.loads(text)
    return _SALES_ADAPTER.validate_python(rows)


def _summarize(reports: list[ReceiptReport]) -> dict:
    drift = sum(1 for report in reports if not report.overall_valid)
    return {
        "total": len(reports),
        "valid": len(reports) - drift,
        "drift": drift,
    }


def _format_text(summary: dict, reports: list[ReceiptReport]) -> str:
    lines = [
        "Receipt Reconciliation Report",
        f"Sales scanned: {summary['total']}",
        f"VALID: {summary['valid']}",
        f"DRIFT: {summary['drift']}",
        "",
    ]
    for report in reports:
        if report.overall_valid:
            continue
        lines.append(f"[DRIFT] {report.summary}")
        for error in report.calculations.errors + report.items_validation.errors:
            lines.append(f"  {error}")
    return "\n".join(lines)


def run_scan(input_path: Path, output_format: str, fail_on_drift: bool) -> int:
    if not settings.RECEIPT_SCAN_ENABLED:
        print("Receipt scan disabled by RECEIPT_SCAN_ENABLED.", file=sys.stderr)
        return 2
    reports = [generate_receipt_report(sale) for sale in load_sales(input_path)]
    summary = _summarize(reports)
    if output_format == "json":
        output = {
            "summary": summary,
            "findings": [report.model_dump(mode="json") for report in reports if not report.overall_valid],
        }
        print(json.dumps(output, indent=2, default=str))
    else:
        print(_format_text(summary, reports))
    if fail_on_drift and summary["drift"] > 0:
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="SALECALC receipt reconciliation scan")
    parser.add_argument("--input", required=True, type=Path, help="JSON array or JSONL file of persisted sales")
    parser.add_argument("--format", choices=["json", "text"], default="text")
    parser.add_argument("--fail-on-drift", action="store_true")
    args = parser.parse_args(argv)
    return run_scan(args.input, args.format, args.fail_on_drift)


if __name__ == "__main__":
    raise SystemExit(main())
