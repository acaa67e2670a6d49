import sys

import pytest

from drivermeta.cli import describe_scan_result, indent_text, main
from drivermeta.report import CatalogScanResult, CatalogScanStatus
from tests._utils import build_catalog, build_metadata_catalog, write_file


def run_cli(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["drivermeta", *map(str, args)])
    main()


def test_indent_text():
    assert indent_text("a", "b\nc", indent=2) == "  a\n  b\n  c"


@pytest.mark.parametrize(
    "result,expected",
    [
        (
            CatalogScanResult("x.cat", CatalogScanStatus.FAILED, error="denied"),
            ["Parse failed: denied"],
        ),
        (
            CatalogScanResult("x.cat", CatalogScanStatus.EMPTY),
            [
                "No metadata found (not signed / unsupported format / no name/value"
                " attributes)."
            ],
        ),
        (
            CatalogScanResult("x.cat", CatalogScanStatus.OK),
            ["Metadata: (only reserved attributes)"],
        ),
        (
            CatalogScanResult(
                "x.cat",
                CatalogScanStatus.OK,
                metadata={"OSAttr": "2:10.0", "Vendor123": "Lenovo"},
            ),
            ["OSAttr    : 2:10.0", "Vendor123 : Lenovo"],
        ),
    ],
)
def test_describe_scan_result(result, expected):
    assert describe_scan_result(result) == expected


def test_main(monkeypatch, capsys, tmp_path):
    write_file(
        tmp_path / "oem1.cat",
        build_metadata_catalog(("HWID1", "pci\\ven_8086"), ("OSAttr", "2:10.0")),
    )
    write_file(tmp_path / "oem2.cat", build_catalog([]))
    write_file(tmp_path / "oem3.cat", b"garbage")

    run_cli(monkeypatch, tmp_path)

    out = capsys.readouterr().out
    assert "OSAttr : 2:10.0" in out
    assert "HWID1" not in out
    assert out.count("No metadata found") == 2
    assert out.count("--------") == 3
    assert out.rstrip().endswith("Done. Total: 3, OK: 1, Empty: 2, Failed: 0")


def test_main_include_reserved(monkeypatch, capsys, tmp_path):
    path = write_file(
        tmp_path / "oem1.cat",
        build_metadata_catalog(("HWID1", "pci\\ven_8086"), ("OSAttr", "2:10.0")),
    )

    run_cli(monkeypatch, path, "--include-reserved")

    out = capsys.readouterr().out
    assert f"{path}:" in out
    assert "HWID1  : pci\\ven_8086" in out
    assert "OSAttr : 2:10.0" in out
    assert "Done. Total: 1, OK: 1, Empty: 0, Failed: 0" in out


def test_main_missing_path(monkeypatch, capsys, tmp_path):
    missing = tmp_path / "missing"

    run_cli(monkeypatch, missing)

    out = capsys.readouterr().out
    assert f"{missing}:\n    Error: Path not found: {missing}" in out
    assert "Done." not in out


def test_main_requires_path(monkeypatch):
    with pytest.raises(SystemExit):
        run_cli(monkeypatch)
