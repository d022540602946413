"""Send exported bill PDFs to a CUPS printer."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

_CUPS_HINT = (
    "Install CUPS:\n"
    "  Ubuntu/Debian: sudo apt install cups\n"
    "  Fedora/RHEL:   sudo dnf install cups"
)


@dataclass
class PrinterInfo:
    name: str
    is_default: bool


def _require(command: str) -> None:
    if shutil.which(command) is None:
        raise RuntimeError(f"{command} command not found. {_CUPS_HINT}")


def _lpstat(flag: str) -> str:
    """Run ``lpstat`` and return stdout, or "" if it fails."""
    try:
        result = subprocess.run(
            ["lpstat", flag],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (subprocess.TimeoutExpired, OSError):
        return ""
    return result.stdout if result.returncode == 0 else ""


class Printer:
    """Print files using the system lpr command."""

    @staticmethod
    def list_printers() -> list[PrinterInfo]:
        """List available printers using lpstat.

        Raises:
            RuntimeError: If lpstat is not available.
        """
        _require("lpstat")

        # "system default destination: Office_Laser"
        default_out = _lpstat("-d")
        default_name = ""
        if ":" in default_out:
            default_name = default_out.strip().split(":")[-1].strip()

        printers: list[PrinterInfo] = []
        for line in _lpstat("-p").strip().splitlines():
            # "printer Office_Laser is idle.  enabled since ..."
            parts = line.split()
            if len(parts) >= 2 and parts[0] == "printer":
                printers.append(
                    PrinterInfo(name=parts[1], is_default=parts[1] == default_name)
                )
        return printers

    @staticmethod
    def print_file(
        file_path: str | Path,
        printer_name: str | None = None,
        copies: int = 1,
    ) -> None:
        """Print a file using lpr.

        Args:
            file_path: Path to the file to print.
            printer_name: Specific printer name. Uses default if None.
            copies: Number of copies to print.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            RuntimeError: If lpr is not available or printing fails.
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        _require("lpr")

        cmd = ["lpr"]
        if printer_name:
            cmd.extend(["-P", printer_name])
        if copies > 1:
            cmd.extend(["-#", str(copies)])
        cmd.append(str(file_path))

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=30,
            )
        except subprocess.TimeoutExpired:
            raise RuntimeError("Print job timed out.")
        if result.returncode != 0:
            raise RuntimeError(f"Printing failed: {result.stderr.strip()}")
