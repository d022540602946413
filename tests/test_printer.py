"""Tests for printer module."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from billbook.printer import Printer


def _result(returncode=0, stdout="", stderr=""):
    result = MagicMock()
    result.returncode = returncode
    result.stdout = stdout
    result.stderr = stderr
    return result


class TestListPrinters:
    def test_list_printers_no_lpstat(self):
        with patch("shutil.which", return_value=None):
            with pytest.raises(RuntimeError, match="lpstat"):
                Printer.list_printers()

    def test_list_printers_with_printers(self):
        with patch("shutil.which", return_value="/usr/bin/lpstat"):
            with patch(
                "subprocess.run",
                side_effect=[
                    _result(stdout="system default destination: Office_Laser\n"),
                    _result(stdout=(
                        "printer Office_Laser is idle.\n"
                        "printer Counter_Receipt disabled since ...\n"
                    )),
                ],
            ):
                printers = Printer.list_printers()

        assert [p.name for p in printers] == ["Office_Laser", "Counter_Receipt"]
        assert printers[0].is_default is True
        assert printers[1].is_default is False

    def test_list_printers_empty(self):
        with patch("shutil.which", return_value="/usr/bin/lpstat"):
            with patch(
                "subprocess.run",
                side_effect=[_result(returncode=1), _result(stdout="")],
            ):
                assert Printer.list_printers() == []

    def test_list_printers_timeout(self):
        with patch("shutil.which", return_value="/usr/bin/lpstat"):
            with patch(
                "subprocess.run",
                side_effect=subprocess.TimeoutExpired(cmd="lpstat", timeout=10),
            ):
                assert Printer.list_printers() == []


class TestPrintFile:
    def test_print_file_not_found(self):
        with pytest.raises(FileNotFoundError, match="File not found"):
            Printer.print_file("/nonexistent/file.pdf")

    def test_print_file_no_lpr(self, tmp_path):
        pdf_file = tmp_path / "bills.pdf"
        pdf_file.write_text("dummy")

        with patch("shutil.which", return_value=None):
            with pytest.raises(RuntimeError, match="lpr"):
                Printer.print_file(pdf_file)

    def test_print_file_default_printer(self, tmp_path):
        pdf_file = tmp_path / "bills.pdf"
        pdf_file.write_text("dummy")

        with patch("shutil.which", return_value="/usr/bin/lpr"):
            with patch("subprocess.run", return_value=_result()) as mock_run:
                Printer.print_file(pdf_file)

        cmd = mock_run.call_args[0][0]
        assert cmd == ["lpr", str(pdf_file)]

    def test_print_file_named_printer_and_copies(self, tmp_path):
        pdf_file = tmp_path / "bills.pdf"
        pdf_file.write_text("dummy")

        with patch("shutil.which", return_value="/usr/bin/lpr"):
            with patch("subprocess.run", return_value=_result()) as mock_run:
                Printer.print_file(pdf_file, printer_name="Office_Laser", copies=2)

        cmd = mock_run.call_args[0][0]
        assert cmd == ["lpr", "-P", "Office_Laser", "-#", "2", str(pdf_file)]

    def test_print_file_failure(self, tmp_path):
        pdf_file = tmp_path / "bills.pdf"
        pdf_file.write_text("dummy")

        with patch("shutil.which", return_value="/usr/bin/lpr"):
            with patch(
                "subprocess.run",
                return_value=_result(returncode=1, stderr="No printer found"),
            ):
                with pytest.raises(RuntimeError, match="No printer found"):
                    Printer.print_file(pdf_file)

    def test_print_file_timeout(self, tmp_path):
        pdf_file = tmp_path / "bills.pdf"
        pdf_file.write_text("dummy")

        with patch("shutil.which", return_value="/usr/bin/lpr"):
            with patch(
                "subprocess.run",
                side_effect=subprocess.TimeoutExpired(cmd="lpr", timeout=30),
            ):
                with pytest.raises(RuntimeError, match="timed out"):
                    Printer.print_file(pdf_file)
