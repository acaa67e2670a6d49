from __future__ import annotations

import enum
import logging
import os
import pathlib
from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from drivermeta.catalog.metadata import (
    RESERVED_LABEL_PREFIX,
    extract_metadata,
    fold_metadata,
)
from drivermeta.catalog.trust_list import PathLike, TrustListStore
from drivermeta.hwid import resolve
from drivermeta.inventory import (
    CATROOT_PATH,
    DriverInventory,
    DriverRecord,
    find_catalog_path,
)

logger = logging.getLogger(__name__)


@dataclass
class DeviceMetadataRecord:
    """The resolved identifiers and catalog metadata of a single installed driver."""

    device_name: str
    version: str
    manufacturer: str
    inf_name: str
    pnp_device_id: str
    signed_driver_hardware_id: str
    raw_matched_hardware_id: str
    display_matched_hardware_id: str
    hardware_ids: list[str] = field(default_factory=list)
    compatible_ids: list[str] = field(default_factory=list)
    catalog_path: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    error: str | None = None
    """Set when the catalog file could not be read."""

    @property
    def has_metadata(self) -> bool:
        return bool(self.metadata)


def build_record(
    driver: DriverRecord,
    *,
    catroot: str | os.PathLike[str] = CATROOT_PATH,
    store: TrustListStore | None = None,
    exclude_prefix: str | None = RESERVED_LABEL_PREFIX,
) -> DeviceMetadataRecord:
    """Builds the output record for a single driver: resolves its hardware ids,
    locates its catalog file and extracts the catalog's metadata.

    A missing catalog, or a catalog without metadata, results in an empty
    :attr:`DeviceMetadataRecord.metadata`. A catalog that can't be read is recorded
    in :attr:`DeviceMetadataRecord.error`.
    """
    resolved = resolve(driver.hardware_id_set)
    record = DeviceMetadataRecord(
        device_name=driver.device_name,
        version=driver.version,
        manufacturer=driver.manufacturer,
        inf_name=driver.inf_name,
        pnp_device_id=driver.pnp_device_id,
        signed_driver_hardware_id=driver.signed_hardware_id,
        raw_matched_hardware_id=resolved.raw_matched,
        display_matched_hardware_id=resolved.display_matched,
        hardware_ids=list(driver.hardware_ids),
        compatible_ids=list(driver.compatible_ids),
    )

    catalog_path = find_catalog_path(driver.inf_name, catroot)
    if catalog_path is None:
        return record

    record.catalog_path = str(catalog_path)
    try:
        attributes = extract_metadata(catalog_path, store=store)
    except OSError as e:
        logger.warning(f"Unable to read catalog {catalog_path}: {e}")
        record.error = str(e)
    else:
        record.metadata = fold_metadata(attributes, exclude_prefix=exclude_prefix)
    return record


def collect_records(
    inventory: DriverInventory,
    *,
    manufacturer: str | None = None,
    catroot: str | os.PathLike[str] = CATROOT_PATH,
    store: TrustListStore | None = None,
    exclude_prefix: str | None = RESERVED_LABEL_PREFIX,
) -> list[DeviceMetadataRecord]:
    """Builds a record for every driver in the inventory.

    :param inventory: The inventory to read the drivers from
    :param manufacturer: When provided, only drivers whose manufacturer contains this
        text (case-insensitive) are included.
    """
    records = []
    for driver in inventory.iter_drivers():
        if manufacturer and manufacturer.casefold() not in (
            driver.manufacturer.casefold()
        ):
            continue
        records.append(
            build_record(
                driver, catroot=catroot, store=store, exclude_prefix=exclude_prefix
            )
        )
    return records


class CatalogScanStatus(enum.Enum):
    """The outcome of scanning a single catalog file."""

    OK = enum.auto()
    """Metadata was found."""
    EMPTY = enum.auto()
    """The file contains no decodable metadata, e.g. because it is not signed, is in
    an unsupported format or has no name/value attributes.
    """
    FAILED = enum.auto()
    """The file could not be read."""


@dataclass
class CatalogScanResult:
    path: pathlib.Path
    status: CatalogScanStatus
    metadata: dict[str, str] = field(default_factory=dict)
    error: str | None = None


def iter_catalog_files(path: PathLike) -> Iterator[pathlib.Path]:
    """Yields the provided path when it is a file, or all ``.cat`` files below the
    provided path (recursively, sorted) when it is a directory.

    :raises FileNotFoundError: when the path does not exist
    """
    path = pathlib.Path(path)
    if path.is_file():
        yield path
    elif path.is_dir():
        yield from sorted(
            p for p in path.rglob("*") if p.is_file() and p.suffix.lower() == ".cat"
        )
    else:
        raise FileNotFoundError(f"Path not found: {path}")


def scan_catalog(
    path: PathLike,
    *,
    store: TrustListStore | None = None,
    exclude_prefix: str | None = RESERVED_LABEL_PREFIX,
) -> CatalogScanResult:
    """Extracts the metadata of a single catalog file, never raising for I/O errors."""
    path = pathlib.Path(path)
    try:
        attributes = extract_metadata(path, store=store)
    except OSError as e:
        logger.warning(f"Unable to read catalog {path}: {e}")
        return CatalogScanResult(path, CatalogScanStatus.FAILED, error=str(e))

    if not attributes:
        return CatalogScanResult(path, CatalogScanStatus.EMPTY)
    return CatalogScanResult(
        path,
        CatalogScanStatus.OK,
        metadata=fold_metadata(attributes, exclude_prefix=exclude_prefix),
    )


def scan_catalogs(
    path: PathLike,
    *,
    store: TrustListStore | None = None,
    exclude_prefix: str | None = RESERVED_LABEL_PREFIX,
) -> list[CatalogScanResult]:
    """Scans a single catalog file, or all catalog files in a directory. A file that
    fails does not stop the scan.
    """
    return [
        scan_catalog(catalog_path, store=store, exclude_prefix=exclude_prefix)
        for catalog_path in iter_catalog_files(path)
    ]


def summarize(results: Iterable[CatalogScanResult]) -> dict[str, int]:
    """Counts the results per status, e.g.
    ``{"total": 3, "ok": 1, "empty": 1, "failed": 1}``.
    """
    counts = Counter(result.status for result in results)
    return {
        "total": sum(counts.values()),
        **{status.name.lower(): counts[status] for status in CatalogScanStatus},
    }
