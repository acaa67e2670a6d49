from __future__ import annotations

import argparse
import logging
import pathlib
import textwrap

from drivermeta.catalog.metadata import RESERVED_LABEL_PREFIX
from drivermeta.report import (
    CatalogScanResult,
    CatalogScanStatus,
    scan_catalogs,
    summarize,
)


def indent_text(*items: str, indent: int = 4) -> str:
    return "\n".join(textwrap.indent(item, " " * indent) for item in items)


def describe_scan_result(result: CatalogScanResult) -> list[str]:
    if result.status == CatalogScanStatus.FAILED:
        return [f"Parse failed: {result.error}"]
    if result.status == CatalogScanStatus.EMPTY:
        return [
            "No metadata found (not signed / unsupported format / no name/value"
            " attributes)."
        ]
    if not result.metadata:
        return ["Metadata: (only reserved attributes)"]
    width = max(len(label) for label in result.metadata)
    return [f"{label:<{width}} : {value}" for label, value in result.metadata.items()]


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Extract the metadata signed into driver catalog files"
    )
    parser.add_argument(
        "paths",
        nargs="+",
        help="Catalog files, or directories to scan for catalog files",
        type=pathlib.Path,
    )
    parser.add_argument(
        "--include-reserved",
        action="store_true",
        help="Also show the HWID attributes listing the catalog's hardware ids.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Provide debug logging on skipped attributes.",
    )
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    exclude_prefix = None if args.include_reserved else RESERVED_LABEL_PREFIX
    for path in args.paths:
        try:
            results = scan_catalogs(path, exclude_prefix=exclude_prefix)
        except OSError as e:
            print(f"{path}:")
            print(f"    Error: {e}")
            continue

        for result in results:
            print(f"{result.path}:")
            print(indent_text(*describe_scan_result(result), indent=4))
            print("--------")

        counts = summarize(results)
        print(
            f"Done. Total: {counts['total']}, OK: {counts['ok']},"
            f" Empty: {counts['empty']}, Failed: {counts['failed']}"
        )


if __name__ == "__main__":
    main()
