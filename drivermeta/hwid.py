"""Resolution of the hardware id a signed driver is bound to.

Windows reports a single "signed" hardware id for an installed driver, while the
device itself reports a list of hardware ids. These do not always agree: the signed
id may be more or less specific than any of the device's ids. This module picks:

* the *raw* match, i.e. the id that Windows most likely used to bind the driver;
* the *display* match, i.e. the most readable id of the device for that driver.

Both are chains of rules that are tried in order; the first rule that returns a
value wins. None of these functions raise; missing data degrades to a best-effort
result, possibly the empty string.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Callable, NamedTuple, Optional

from typing_extensions import Self

_ACPI_VEN_DEV = re.compile(
    r"^ACPI\\VEN_([A-Z0-9]{3})&DEV_([0-9A-F]{4})$", re.IGNORECASE
)

Rule = Callable[[str, Sequence[str]], Optional[str]]


def _fold(value: str) -> str:
    """Uppercases character by character, like an ordinal ignore-case comparison.
    Characters whose uppercase form is longer, such as "ß", are kept as is.
    """
    return "".join(c if len(c.upper()) != 1 else c.upper() for c in value)


def _equals(a: str, b: str) -> bool:
    return _fold(a.strip()) == _fold(b.strip())


def _starts_with(value: str, prefix: str) -> bool:
    return _fold(value).startswith(_fold(prefix))


def unique_ids(ids: Iterable[str | None]) -> tuple[str, ...]:
    """Removes blank entries and case-insensitive duplicates, keeping the first
    occurrence of each id in order.
    """
    seen = set()
    result = []
    for hwid in ids:
        if hwid is None or not hwid.strip():
            continue
        key = _fold(hwid)
        if key not in seen:
            seen.add(key)
            result.append(hwid)
    return tuple(result)


@dataclass(frozen=True)
class HardwareIdSet:
    """The identifiers of a single device, as reported by the inventory."""

    signed_id: str = ""
    hardware_ids: tuple[str, ...] = field(default_factory=tuple)
    compatible_ids: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_lists(
        cls,
        signed_id: str | None,
        hardware_ids: Iterable[str | None] = (),
        compatible_ids: Iterable[str | None] = (),
    ) -> Self:
        return cls(
            signed_id=signed_id or "",
            hardware_ids=unique_ids(hardware_ids),
            compatible_ids=unique_ids(compatible_ids),
        )


class ResolvedIdentifiers(NamedTuple):
    raw_matched: str
    display_matched: str


def _first_non_blank(hardware_ids: Sequence[str]) -> str:
    return next((h for h in hardware_ids if h and h.strip()), "")


# Stage A: the raw match


def _exact_match(signed_id: str, hardware_ids: Sequence[str]) -> str | None:
    return next((h for h in hardware_ids if h and _equals(h, signed_id)), None)


def _prefix_match(signed_id: str, hardware_ids: Sequence[str]) -> str | None:
    """The first id that is more specific than the signed id."""
    return next(
        (h for h in hardware_ids if h and h.strip() and _starts_with(h, signed_id)),
        None,
    )


def _reverse_prefix_match(signed_id: str, hardware_ids: Sequence[str]) -> str | None:
    """The longest id that is less specific than the signed id. sorted() is stable,
    so of equally long ids the first one listed by the device wins.
    """
    candidates = sorted(
        (h for h in hardware_ids if h and h.strip()), key=len, reverse=True
    )
    return next((h for h in candidates if _starts_with(signed_id, h)), None)


RAW_MATCH_RULES: tuple[Rule, ...] = (
    _exact_match,
    _prefix_match,
    _reverse_prefix_match,
)


def pick_raw_match(signed_id: str | None, hardware_ids: Sequence[str] | None) -> str:
    """Returns the hardware id that was most likely used to bind the driver.

    :param signed_id: The hardware id from the driver signing record
    :param hardware_ids: The hardware ids reported by the device
    :return: The matching entry of ``hardware_ids``, or the signed id itself when
        none matches. When there is no signed id, the first hardware id.
    """
    hardware_ids = hardware_ids or ()
    signed_id = (signed_id or "").strip()

    if not signed_id:
        return _first_non_blank(hardware_ids)

    for rule in RAW_MATCH_RULES:
        match = rule(signed_id, hardware_ids)
        if match:
            return match
    return signed_id


# Stage B: the display match


def _acpi_compact_match(raw_matched: str, hardware_ids: Sequence[str]) -> str | None:
    """ACPI\\VEN_XXX&DEV_YYYY is preferably shown as ACPI\\XXXYYYY, when the device
    reports that form as well.
    """
    m = _ACPI_VEN_DEV.match(raw_matched)
    if not m:
        return None
    preferred = "ACPI\\" + m.group(1).upper() + m.group(2).upper()
    return next((h for h in hardware_ids if h and _equals(h, preferred)), None)


def _readable_match(raw_matched: str, hardware_ids: Sequence[str]) -> str | None:
    """The first id that is neither composite nor a wildcard."""
    return next(
        (
            h
            for h in hardware_ids
            if h and h.strip() and "&" not in h and not h.lstrip().startswith("*")
        ),
        None,
    )


DISPLAY_MATCH_RULES: tuple[Rule, ...] = (
    _acpi_compact_match,
    _readable_match,
    _exact_match,
)


def pick_display_match(
    raw_matched: str | None, hardware_ids: Sequence[str] | None
) -> str:
    """Returns the most readable hardware id of the device for the raw match. Only
    ids the device actually reports are chosen; otherwise the raw match is returned.

    :param raw_matched: The result of :func:`pick_raw_match`
    :param hardware_ids: The hardware ids reported by the device
    """
    hardware_ids = hardware_ids or ()
    raw_matched = (raw_matched or "").strip()

    if not raw_matched:
        return _first_non_blank(hardware_ids)

    for rule in DISPLAY_MATCH_RULES:
        match = rule(raw_matched, hardware_ids)
        if match:
            return match
    return raw_matched


def resolve(hardware_id_set: HardwareIdSet) -> ResolvedIdentifiers:
    """Computes both the raw and the display match for a device."""
    raw_matched = pick_raw_match(
        hardware_id_set.signed_id, hardware_id_set.hardware_ids
    )
    return ResolvedIdentifiers(
        raw_matched=raw_matched,
        display_matched=pick_display_match(
            raw_matched, hardware_id_set.hardware_ids
        ),
    )


def is_matched_for_display(
    candidate: str | None, display_matched: str | None, raw_matched: str | None
) -> bool:
    """Indicates whether ``candidate`` is the id to highlight in a listing of the
    device's ids. This is the display match, or the raw match when there is no
    display match.
    """
    candidate = (candidate or "").strip()
    display_matched = (display_matched or "").strip()
    raw_matched = (raw_matched or "").strip()

    if display_matched:
        return _equals(candidate, display_matched)
    return bool(raw_matched) and _equals(candidate, raw_matched)
