#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
config.py

Configuration constants and defaults for the notary fee engine.

Every value can be overridden through an environment variable so the same
definitions and history files can be reused across shells, CI and the CLI.

Fee type definitions (document groups + fee types) are plain YAML/JSON files.
The evaluator itself never reads configuration: it only receives a parsed
FeeTypeConfig and the caller's input map.
"""

import os
from pathlib import Path

# ---------------------------------------------------------------------
# Currency
# ---------------------------------------------------------------------
# DEFAULT_CURRENCY:
# - Display currency for reports and CLI output.
# - Amounts are whatever unit the fee type definitions use; the engine does
#   not convert. VND has no subdivision, so reports print no decimals.
DEFAULT_CURRENCY = os.getenv("NOTARY_FEES_CURRENCY", "VND")

# Currencies printed without a fractional part.
ZERO_DECIMAL_CURRENCIES = {"VND", "JPY", "KRW"}

# ---------------------------------------------------------------------
# Fee type definitions
# ---------------------------------------------------------------------
# DEFINITIONS_DIR:
# - Folder scanned for *.yaml / *.yml / *.json definition files.
# - Defaults to the definitions shipped inside the package.
DEFINITIONS_DIR = Path(
    os.getenv(
        "NOTARY_FEES_DEFINITIONS_DIR",
        str(Path(__file__).resolve().parent / "definitions"),
    )
)

# ---------------------------------------------------------------------
# Calculation history
# ---------------------------------------------------------------------
# HISTORY_FILE:
# - Append-only JSONL file, one persisted calculation record per line.
HISTORY_FILE = os.getenv("NOTARY_FEES_HISTORY_FILE", "fee_calculations.jsonl")

# ---------------------------------------------------------------------
# Audit trace
# ---------------------------------------------------------------------
# TRACE_FILE / TRACE_ENABLED:
# - JSONL trace of every calculation (inputs, method, totals).
# - Disable with NOTARY_FEES_TRACE=0 (or false/no).
TRACE_FILE = os.getenv("NOTARY_FEES_TRACE_FILE", str(Path("runs") / "trace.jsonl"))
TRACE_ENABLED = os.getenv("NOTARY_FEES_TRACE", "1").strip().lower() not in {"0", "false", "no"}

# ---------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------
LOG_LEVEL = os.getenv("NOTARY_FEES_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"

# ---------------------------------------------------------------------
# Listing defaults
# ---------------------------------------------------------------------
DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = int(os.getenv("NOTARY_FEES_PAGE_LIMIT", "20"))
