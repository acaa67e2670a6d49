from __future__ import annotations

import logging
import os
import pathlib
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Protocol

from drivermeta.hwid import HardwareIdSet, unique_ids

logger = logging.getLogger(__name__)

CATROOT_PATH = pathlib.PureWindowsPath(
    os.environ.get("SYSTEMROOT", r"C:\Windows"),
    "System32",
    "CatRoot",
    "{F750E6C3-38EE-11D1-85E5-00C04FC295EE}",
)
"""The directory where Windows stores the catalog files of installed driver
packages. This default is only meaningful on Windows; elsewhere, pass the catalog
directory explicitly.
"""


@dataclass
class DriverRecord:
    """An installed driver and the device it is installed for, as reported by a
    :class:`DriverInventory`.
    """

    device_name: str = ""
    version: str = ""
    manufacturer: str = ""
    inf_name: str = ""
    pnp_device_id: str = ""
    signed_hardware_id: str = ""
    hardware_ids: list[str] = field(default_factory=list)
    compatible_ids: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.hardware_ids = list(unique_ids(self.hardware_ids))
        self.compatible_ids = list(unique_ids(self.compatible_ids))

    @property
    def hardware_id_set(self) -> HardwareIdSet:
        return HardwareIdSet.from_lists(
            self.signed_hardware_id, self.hardware_ids, self.compatible_ids
        )


class DriverInventory(Protocol):
    """A source of installed drivers, such as the WMI classes
    ``Win32_PnPSignedDriver`` and ``Win32_PnPEntity``.
    """

    def iter_drivers(self) -> Iterator[DriverRecord]: ...


class StaticInventory:
    """A :class:`DriverInventory` serving a fixed snapshot of drivers."""

    def __init__(self, drivers: Iterable[DriverRecord]):
        self.drivers = list(drivers)

    def iter_drivers(self) -> Iterator[DriverRecord]:
        yield from self.drivers


def find_catalog_path(
    inf_name: str | None, catroot: str | os.PathLike[str] = CATROOT_PATH
) -> pathlib.Path | None:
    """Returns the path of the catalog file belonging to an installed INF, e.g.
    ``oem12.inf`` is signed by ``oem12.cat`` in the catalog store.

    :param inf_name: The name of the installed INF file
    :param catroot: The directory to look in
    :return: The path, or :const:`None` when there is no catalog
    """
    if not inf_name or not inf_name.strip():
        return None

    try:
        catalog_name = pathlib.PurePath(inf_name.strip()).with_suffix(".cat").name
    except ValueError:
        logger.debug(f"Not a valid INF name: {inf_name!r}")
        return None
    path = pathlib.Path(os.fspath(catroot), catalog_name)
    if path.is_file():
        return path

    logger.debug(f"No catalog file for {inf_name} in {catroot}")
    return None
