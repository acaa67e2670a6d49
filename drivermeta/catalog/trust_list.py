from __future__ import annotations

import contextlib
import logging
import os
import pathlib
from collections.abc import Iterator
from dataclasses import dataclass
from functools import cached_property
from typing import ContextManager, Protocol, Union, cast

from asn1crypto import cms
from asn1crypto.core import Void
from typing_extensions import Self

from drivermeta import asn1
from drivermeta.exceptions import TrustListUnavailableError

logger = logging.getLogger(__name__)

CAT_NAMEVALUE_OID = "1.3.6.1.4.1.311.12.2.1"
"""Object identifier of the catalog-level name/value attributes (CAT_NAMEVALUE)."""

PathLike = Union[str, "os.PathLike[str]"]


@dataclass(frozen=True)
class RawExtensionBlob:
    """The raw value of a single extension in a certificate trust list."""

    object_id: str
    value: bytes


class TrustListContext(Protocol):
    """The opened trust list, as exposed by a :class:`TrustListStore`."""

    @property
    def extension_count(self) -> int: ...

    def extension_object_id(self, index: int) -> str: ...

    def extension_value(self, index: int) -> bytes: ...


class TrustListStore(Protocol):
    """Opens files as trust lists. The returned context manager must release the
    trust list when it exits, and must raise :exc:`TrustListUnavailableError` when the
    file is not a trust list container.
    """

    def open(self, path: PathLike) -> ContextManager[TrustListContext]: ...


class CatalogTrustList:
    """A catalog file (or any other certificate trust list), parsed from its PKCS#7
    envelope. It is based on the following structure::

        ContentInfo ::= SEQUENCE {
          contentType ContentType,                   -- signedData
          content [0] EXPLICIT SignedData
        }
        SignedData ::= SEQUENCE {
          ...
          contentInfo ContentInfo,                   -- microsoft_ctl
          ...
        }

    The signature itself is not verified; only the content of the trust list is
    exposed. See :mod:`drivermeta.asn1.ctl` for the trust list structure.
    """

    _expected_content_type = "microsoft_ctl"

    def __init__(self, asn1: cms.SignedData):
        """
        :param asn1: The ASN.1 structure of the SignedData object
        """
        self.asn1: cms.SignedData | None = asn1
        self._validate_asn1()

    @classmethod
    def from_envelope(cls, data: bytes) -> Self:
        """Loads a :class:`CatalogTrustList` from raw data that contains ContentInfo.

        :param data: The bytes to parse
        :raises TrustListUnavailableError: when the data is not a trust list
        """
        try:
            content_info = cms.ContentInfo.load(data)
            if content_info["content_type"].native != "signed_data":
                raise TrustListUnavailableError(
                    "ContentInfo does not contain SignedData"
                )
            trust_list = cls(content_info["content"])
            # parse the extensions now, so parse errors surface while opening
            trust_list._extensions  # noqa: B018
        except (ValueError, TypeError, KeyError) as e:
            raise TrustListUnavailableError(
                f"Error while parsing certificate trust list: {e}"
            ) from e
        return trust_list

    def _validate_asn1(self) -> None:
        if self.content_type != self._expected_content_type:
            raise TrustListUnavailableError(
                f"SignedData.contentInfo contains {self.content_type},"
                f" expected {self._expected_content_type}"
            )

    def _get_asn1(self) -> cms.SignedData:
        if self.asn1 is None:
            raise TrustListUnavailableError("The trust list has been released.")
        return self.asn1

    def release(self) -> None:
        """Drops the parsed structure. Any access afterwards raises
        :exc:`TrustListUnavailableError`.
        """
        self.asn1 = None

    @property
    def released(self) -> bool:
        return self.asn1 is None

    @property
    def content_type(self) -> str:
        """The class of the type of the content in the object."""
        return cast(
            str, self._get_asn1()["encap_content_info"]["content_type"].native
        )

    @property
    def content_asn1(self) -> asn1.ctl.CertificateTrustList:
        """The actual trust list, as parsed by the content type spec."""
        content = self._get_asn1()["encap_content_info"]["content"]
        if hasattr(content, "parsed"):
            return content.parsed
        return content

    @cached_property
    def _extensions(self) -> list[RawExtensionBlob]:
        extensions = self.content_asn1["ctl_extensions"]
        if isinstance(extensions, Void):
            return []
        return [
            RawExtensionBlob(
                object_id=extension["extn_id"].dotted,
                value=bytes(extension["extn_value"].contents or b""),
            )
            for extension in extensions
        ]

    @property
    def extensions(self) -> list[RawExtensionBlob]:
        """All extensions of the trust list, in the order they are stored."""
        self._get_asn1()
        return self._extensions

    @property
    def extension_count(self) -> int:
        return len(self.extensions)

    def extension_object_id(self, index: int) -> str:
        return self.extensions[index].object_id

    def extension_value(self, index: int) -> bytes:
        return self.extensions[index].value


class FileTrustListStore:
    """Opens catalog files from disk and parses them with :class:`CatalogTrustList`."""

    @contextlib.contextmanager
    def open(self, path: PathLike) -> Iterator[CatalogTrustList]:
        """Opens the trust list in the provided file.

        :raises TrustListUnavailableError: when the file is not a trust list
        :raises OSError: when the file could not be read
        """
        with pathlib.Path(path).open("rb") as file_obj:
            data = file_obj.read()

        trust_list = CatalogTrustList.from_envelope(data)
        try:
            yield trust_list
        finally:
            trust_list.release()


DEFAULT_TRUST_LIST_STORE = FileTrustListStore()


def extract_extension_blobs(
    catalog_path: PathLike,
    target_oid: str = CAT_NAMEVALUE_OID,
    *,
    store: TrustListStore | None = None,
) -> list[RawExtensionBlob]:
    """Returns every extension in the trust list of the catalog file whose object
    identifier equals ``target_oid``, in the order they are stored.

    A file that can't be opened as a trust list simply has no extensions; callers
    should treat the empty result as "no metadata", not as an error.

    :param catalog_path: The path to the catalog file
    :param target_oid: The dotted object identifier to look for. Compared
        case-sensitively, without normalization.
    :param store: The trust list store to open the file with. Defaults to reading
        the file from disk.
    :raises OSError: when the file could not be read at all
    """
    if store is None:
        store = DEFAULT_TRUST_LIST_STORE

    try:
        with store.open(catalog_path) as context:
            return [
                RawExtensionBlob(
                    object_id=context.extension_object_id(index),
                    value=context.extension_value(index),
                )
                for index in range(context.extension_count)
                if context.extension_object_id(index) == target_oid
            ]
    except TrustListUnavailableError as e:
        logger.debug(f"No trust list in {catalog_path}: {e}")
        return []
