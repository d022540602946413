"""TOML configuration loader for billbook."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

from .db.store import DEFAULT_DB_PATH


@dataclass
class DatabaseConfig:
    path: str = DEFAULT_DB_PATH


@dataclass
class PDFConfig:
    font_path: str = ""
    output_dir: str = "."


@dataclass
class DisplayConfig:
    currency: str = "$"


@dataclass
class PrinterConfig:
    printer_name: str = ""


@dataclass
class BillingConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    pdf: PDFConfig = field(default_factory=PDFConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    printer: PrinterConfig = field(default_factory=PrinterConfig)


def load_config(path: str | Path | None = None) -> BillingConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The database path and PDF font can be set via environment variables
    when the file leaves them empty.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    dbs = raw.get("database", {})
    pdf = raw.get("pdf", {})
    dsp = raw.get("display", {})
    prn = raw.get("printer", {})

    # Resolve: config file → environment variable → default
    db_path = (
        dbs.get("path", "")
        or os.environ.get("BILLBOOK_DB_PATH", "")
        or DEFAULT_DB_PATH
    )
    font_path = pdf.get("font_path", "") or os.environ.get("BILLBOOK_FONT", "")

    return BillingConfig(
        database=DatabaseConfig(path=db_path),
        pdf=PDFConfig(
            font_path=font_path,
            output_dir=pdf.get("output_dir", "."),
        ),
        display=DisplayConfig(
            currency=dsp.get("currency", "$"),
        ),
        printer=PrinterConfig(
            printer_name=prn.get("printer_name", ""),
        ),
    )
