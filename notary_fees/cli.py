#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Notary Fee Engine – CLI

Flow:
- Loads document groups + fee types from YAML/JSON definitions.
- `calculate`: evaluates one fee type against form inputs, prints the
  breakdown and appends the record to the local history (JSONL).
- `fee-types`, `history`, `show`: read paths over definitions and history.
"""

import argparse
import json
import logging
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape

from .config import (
    DEFAULT_CURRENCY,
    DEFAULT_PAGE,
    DEFAULT_PAGE_LIMIT,
    DEFINITIONS_DIR,
    HISTORY_FILE,
    LOG_FORMAT,
    LOG_LEVEL,
    TRACE_ENABLED,
    TRACE_FILE,
)
from .errors import FeeEngineError
from .fee_types import CalculationMethod, FeeTypeQuery, build_default_registry, dump_fee_type
from .records import CalculationQuery, FeeCalculationService, build_store
from .reporting.format import format_money, render_calculation, render_history_table
from .utils.trace import build_trace_logger

console = Console()
logger = logging.getLogger("notary_fees")


# --------------------------------------------------------------------
# Argument parsing
# --------------------------------------------------------------------
def _add_paging(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--page", type=int, default=DEFAULT_PAGE, help="Page number (starts at 1).")
    parser.add_argument("--limit", type=int, default=DEFAULT_PAGE_LIMIT, help="Records per page.")
    parser.add_argument("--sort-order", choices=["ASC", "DESC"], default="DESC")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notary-fees",
        description=(
            "Notary fee calculator\n\n"
            "Evaluates notary fee types (fixed, percentage, tiered brackets,\n"
            "additional per-unit fees, min/max limits) and keeps an audit history."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--definitions",
        type=str,
        default=str(DEFINITIONS_DIR),
        help="Folder with fee type definitions (*.yaml, *.yml, *.json).",
    )
    parser.add_argument(
        "--history-file",
        type=str,
        default=HISTORY_FILE,
        help="JSONL file holding persisted calculations.",
    )
    parser.add_argument("--currency", type=str, default=DEFAULT_CURRENCY, help="Display currency.")
    parser.add_argument(
        "--log-level",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        default=LOG_LEVEL,
        help="Logging level for internal messages.",
    )
    parser.add_argument("--trace-path", type=str, default=TRACE_FILE, help="Audit trace JSONL path.")
    parser.add_argument("--no-trace", action="store_true", help="Do not write the audit trace.")

    sub = parser.add_subparsers(dest="command", required=True)

    calc = sub.add_parser("calculate", help="Calculate a fee and store it in the history.")
    calc.add_argument("--document-group", required=True, help="Document group ID.")
    calc.add_argument("--fee-type", required=True, help="Fee type ID.")
    src = calc.add_mutually_exclusive_group()
    src.add_argument("--input", type=str, default=None, help='Input JSON, e.g. \'{"property_value": 150000000}\'.')
    src.add_argument("--input-file", type=str, default=None, help="Path to a JSON file with the input data.")
    calc.add_argument("--user", type=str, default=None, help="User ID (omit for guest calculations).")
    calc.add_argument("--format", choices=["markdown", "json"], default="markdown")

    ft = sub.add_parser("fee-types", help="List fee types.")
    ft.add_argument("--document-group", default=None)
    ft.add_argument("--method", choices=[m.value for m in CalculationMethod], default=None)
    ft.add_argument("--search", default=None, help="Case-insensitive match on the fee type name.")
    ft.add_argument("--status", choices=["active", "inactive"], default=None)
    ft.add_argument("--sort-by", choices=["createdAt", "name"], default="createdAt")
    ft.add_argument("--format", choices=["markdown", "json"], default="markdown")
    _add_paging(ft)

    hist = sub.add_parser("history", help="List stored calculations.")
    hist.add_argument("--user", default=None)
    hist.add_argument("--document-group", default=None)
    hist.add_argument("--fee-type", default=None)
    hist.add_argument("--sort-by", choices=["createdAt", "totalFee"], default="createdAt")
    hist.add_argument("--format", choices=["markdown", "json"], default="markdown")
    _add_paging(hist)

    show = sub.add_parser("show", help="Show one stored calculation.")
    show.add_argument("calculation_id")
    show.add_argument("--format", choices=["markdown", "json"], default="markdown")

    return parser


# --------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------
def _read_input_data(args: argparse.Namespace) -> Dict[str, Any]:
    if args.input_file:
        raw = Path(args.input_file).read_text(encoding="utf-8")
    elif args.input:
        raw = args.input
    elif not sys.stdin.isatty():
        raw = sys.stdin.read()
    else:
        raw = ""
    if not raw.strip():
        return {}
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Input data must be a JSON object")
    return data


def _print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, ensure_ascii=False, default=str))


def _cmd_calculate(args: argparse.Namespace, service: FeeCalculationService) -> None:
    input_data = _read_input_data(args)
    record = service.create(args.document_group, args.fee_type, input_data, user_id=args.user)
    if args.format == "json":
        _print_json(record.to_dict())
        return
    fee_type = service.registry.get(record.fee_type_id)
    console.rule(f"[bold green]{fee_type.name or fee_type.id}[/bold green]")
    console.print(render_calculation(record.calculation_result, args.currency), markup=False)
    console.print(f"[green]Saved calculation {record.id}[/green]")


def _cmd_fee_types(args: argparse.Namespace, service: FeeCalculationService) -> None:
    status: Optional[bool] = None if args.status is None else args.status == "active"
    result = service.registry.find_all(
        FeeTypeQuery(
            page=args.page,
            limit=args.limit,
            search=args.search,
            document_group_id=args.document_group,
            calculation_method=CalculationMethod(args.method) if args.method else None,
            status=status,
            sort_by=args.sort_by,
            sort_order=args.sort_order,
        )
    )
    if args.format == "json":
        payload = result.to_dict()
        payload["items"] = [dump_fee_type(ft) for ft in result.items]
        _print_json(payload)
        return
    rows: List[str] = [
        "| ID | Name | Method | Document group | Min | Max | Active |",
        "|---|---|---|---|---:|---:|---|",
    ]
    for f in result.items:
        rows.append(
            f"| {f.id} | {f.name} | {f.calculation_method.value} | {f.document_group_id} | "
            f"{format_money(f.min_fee, args.currency)} | {format_money(f.max_fee, args.currency)} | "
            f"{'yes' if f.status else 'no'} |"
        )
    console.print("\n".join(rows), markup=False)
    console.print(f"page {result.page}/{max(result.total_pages, 1)} ({result.total} fee types)")


def _cmd_history(args: argparse.Namespace, service: FeeCalculationService) -> None:
    result = service.find_all(
        CalculationQuery(
            page=args.page,
            limit=args.limit,
            user_id=args.user,
            document_group_id=args.document_group,
            fee_type_id=args.fee_type,
            sort_by=args.sort_by,
            sort_order=args.sort_order,
        )
    )
    if args.format == "json":
        _print_json(result.to_dict())
        return
    console.print(render_history_table(result.items, args.currency), markup=False)
    console.print(f"page {result.page}/{max(result.total_pages, 1)} ({result.total} calculations)")


def _cmd_show(args: argparse.Namespace, service: FeeCalculationService) -> None:
    record = service.find_one(args.calculation_id)
    if args.format == "json":
        _print_json(record.to_dict())
        return
    console.print(f"Input: {json.dumps(record.input_data, ensure_ascii=False, default=str)}", markup=False)
    console.print(render_calculation(record.calculation_result, args.currency), markup=False)


_COMMANDS = {
    "calculate": _cmd_calculate,
    "fee-types": _cmd_fee_types,
    "history": _cmd_history,
    "show": _cmd_show,
}


# --------------------------------------------------------------------
# Main
# --------------------------------------------------------------------
def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    try:
        tool_version = metadata.version("notary-fee-engine")
    except metadata.PackageNotFoundError:
        tool_version = "dev"
    logger.debug("notary-fees %s, arguments: %s", tool_version, args)

    trace = build_trace_logger(args.trace_path, enabled=TRACE_ENABLED and not args.no_trace)
    try:
        registry = build_default_registry(Path(args.definitions))
        store = build_store(args.history_file)
        service = FeeCalculationService(registry, store, trace=trace)
        _COMMANDS[args.command](args, service)
    except FeeEngineError as ex:
        logger.debug("Command %s failed", args.command, exc_info=True)
        console.print(f"[red]{escape(str(ex))}[/red]")
        return 1
    except (ValueError, OSError) as ex:
        console.print(f"[red]Invalid input: {escape(str(ex))}[/red]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
