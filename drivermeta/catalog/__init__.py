from .metadata import (
    RESERVED_LABEL_PREFIX,
    DecodedAttribute,
    decode_name_value,
    extract_metadata,
    fold_metadata,
    parse_name_value,
)
from .trust_list import (
    CAT_NAMEVALUE_OID,
    CatalogTrustList,
    FileTrustListStore,
    RawExtensionBlob,
    TrustListStore,
    extract_extension_blobs,
)

__all__ = [
    "CAT_NAMEVALUE_OID",
    "RESERVED_LABEL_PREFIX",
    "CatalogTrustList",
    "DecodedAttribute",
    "FileTrustListStore",
    "RawExtensionBlob",
    "TrustListStore",
    "decode_name_value",
    "extract_extension_blobs",
    "extract_metadata",
    "fold_metadata",
    "parse_name_value",
]
