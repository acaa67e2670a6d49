from __future__ import annotations

import contextlib
import datetime
import pathlib

from asn1crypto import cms, core, x509

from drivermeta.asn1.ctl import CertificateTrustList
from drivermeta.catalog import CAT_NAMEVALUE_OID
from drivermeta.exceptions import TrustListUnavailableError


def encode_length(length: int) -> bytes:
    if length <= 0x7F:
        return bytes([length])
    body = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([0x80 | len(body)]) + body


def tlv(tag: int, content: bytes) -> bytes:
    return bytes([tag]) + encode_length(len(content)) + content


def name_value(
    label: str,
    value: str,
    *,
    flags: int | None = 0x10010001,
    label_padding: int = 0,
    value_padding: int = 1,
) -> bytes:
    """Encodes a CAT_NAMEVALUE attribute the way makecat does: a NUL-terminated
    little-endian value, and a big-endian label.
    """
    content = tlv(0x1E, (label + "\0" * label_padding).encode("utf-16-be"))
    if flags is not None:
        content += tlv(0x02, flags.to_bytes(4, "big"))
    content += tlv(0x04, (value + "\0" * value_padding).encode("utf-16-le"))
    return tlv(0x30, content)


def build_catalog(
    extensions: list[tuple[str, bytes]] | None = None,
    *,
    members: list[tuple[bytes, list[tuple[str, bytes]]]] | None = None,
    subject_usage: str = "microsoft_catalog_list",
) -> bytes:
    """Builds an (unsigned) catalog file with the provided ctlExtensions. Members are
    given as the subject identifier (the file hash) and its encoded attributes.
    """
    fields = {
        "subject_usage": [subject_usage],
        "list_identifier": b"\x01\x02\x03\x04",
        "ctl_this_update": x509.Time(
            name="utc_time",
            value=datetime.datetime(2024, 5, 1, 12, 0, tzinfo=datetime.timezone.utc),
        ),
        "subject_algorithm": {"algorithm": "microsoft_catalog_list_member"},
    }
    if members is not None:
        fields["trusted_subjects"] = [
            {
                "subject_identifier": identifier,
                "subject_attributes": [
                    {"type": oid, "values": [core.Any.load(value)]}
                    for oid, value in attributes
                ],
            }
            for identifier, attributes in members
        ]
    if extensions is not None:
        fields["ctl_extensions"] = [
            {"extn_id": oid, "critical": False, "extn_value": value}
            for oid, value in extensions
        ]

    signed_data = cms.SignedData(
        {
            "version": "v1",
            "digest_algorithms": [{"algorithm": "sha1"}],
            "encap_content_info": {
                "content_type": "microsoft_ctl",
                "content": CertificateTrustList(fields),
            },
            "signer_infos": [],
        }
    )
    return cms.ContentInfo(
        {"content_type": "signed_data", "content": signed_data}
    ).dump()


def build_metadata_catalog(*attributes: tuple[str, str]) -> bytes:
    return build_catalog(
        [(CAT_NAMEVALUE_OID, name_value(label, value)) for label, value in attributes]
    )


def write_file(path: pathlib.Path, data: bytes) -> pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


class FakeTrustList:
    def __init__(self, extensions: list[tuple[str, bytes]]):
        self.extensions = extensions
        self.released = False

    @property
    def extension_count(self) -> int:
        return len(self.extensions)

    def extension_object_id(self, index: int) -> str:
        return self.extensions[index][0]

    def extension_value(self, index: int) -> bytes:
        value = self.extensions[index][1]
        if isinstance(value, Exception):
            raise value
        return value


class FakeTrustListStore:
    """Serves trust lists by file name. A name mapping to an exception raises it
    when opening; an unknown name is not a trust list.
    """

    def __init__(self, catalogs: dict[str, list[tuple[str, bytes]] | Exception]):
        self.catalogs = catalogs
        self.opened: list[FakeTrustList] = []

    @contextlib.contextmanager
    def open(self, path):
        name = pathlib.Path(path).name
        if name not in self.catalogs:
            raise TrustListUnavailableError(f"{name} is not a trust list")
        catalog = self.catalogs[name]
        if isinstance(catalog, Exception):
            raise catalog

        trust_list = FakeTrustList(catalog)
        self.opened.append(trust_list)
        try:
            yield trust_list
        finally:
            trust_list.released = True
