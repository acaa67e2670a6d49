from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import NamedTuple

from drivermeta.asn1 import der
from drivermeta.catalog.trust_list import (
    CAT_NAMEVALUE_OID,
    PathLike,
    TrustListStore,
    extract_extension_blobs,
)
from drivermeta.exceptions import MalformedEncodingError

logger = logging.getLogger(__name__)

RESERVED_LABEL_PREFIX = "HWID"
"""Labels starting with this prefix list the hardware ids of the catalog; they are
not considered metadata.
"""


class DecodedAttribute(NamedTuple):
    """A single name/value attribute signed into a catalog, e.g.
    ``("OSAttr", "2:10.0")``.
    """

    label: str
    value: str


def _decode_text(data: bytes, encoding: str) -> str:
    return data.decode(encoding, errors="replace").replace("\0", "").strip()


def parse_name_value(data: bytes) -> DecodedAttribute:
    """Parses the value of a single name/value extension. This structure is
    based on the CAT_NAMEVALUE struct in WinTrust.h::

        NameValue ::= SEQUENCE {
            refname     BMPSTRING,
            typeaction  INTEGER OPTIONAL,
            value       OCTETSTRING
        }

    Note that the name is encoded as big-endian UTF-16, while the value is encoded as
    little-endian UTF-16.

    :raises MalformedEncodingError: when the data does not have this structure
    """
    pos = der.expect_tag(data, 0, der.SEQUENCE)
    # the SEQUENCE's content is walked field by field, so only skip its header
    _, header = der.read_length(data, pos)
    pos += header

    label_bytes, pos = der.read_element(data, pos, der.BMP_STRING)
    label = _decode_text(label_bytes, "utf-16-be")
    if not label:
        raise MalformedEncodingError("NameValue.refname is empty")

    if der.peek_tag(data, pos) == der.INTEGER:
        _, pos = der.read_element(data, pos, der.INTEGER)

    value_bytes, pos = der.read_element(data, pos, der.OCTET_STRING)
    return DecodedAttribute(label, _decode_text(value_bytes, "utf-16-le"))


def decode_name_value(data: bytes) -> DecodedAttribute | None:
    """Same as :func:`parse_name_value`, but returns :const:`None` for data that
    could not be parsed, rather than raising an error.
    """
    try:
        return parse_name_value(data)
    except MalformedEncodingError as e:
        logger.debug(f"Skipping malformed name/value attribute: {e}")
        return None


def extract_metadata(
    catalog_path: PathLike, *, store: TrustListStore | None = None
) -> list[DecodedAttribute]:
    """Extracts all catalog-level name/value attributes from a catalog file, in the
    order they are stored. Attributes that can't be decoded are skipped.

    :param catalog_path: The path to the catalog file
    :param store: The trust list store to open the file with
    :raises OSError: when the file could not be read at all
    """
    attributes = []
    for blob in extract_extension_blobs(catalog_path, CAT_NAMEVALUE_OID, store=store):
        attribute = decode_name_value(blob.value)
        if attribute is not None:
            attributes.append(attribute)
    return attributes


def fold_metadata(
    attributes: Iterable[DecodedAttribute],
    *,
    exclude_prefix: str | None = RESERVED_LABEL_PREFIX,
) -> dict[str, str]:
    """Folds attributes into a label to value mapping. When a label occurs multiple
    times, the last occurrence wins.

    :param attributes: The attributes to fold
    :param exclude_prefix: Labels starting with this prefix (case-insensitive) are
        left out. Use :const:`None` to keep all labels.
    """
    prefix = exclude_prefix.casefold() if exclude_prefix else None
    metadata: dict[str, str] = {}
    for label, value in attributes:
        if prefix is not None and label.casefold().startswith(prefix):
            continue
        metadata[label] = value
    return metadata
