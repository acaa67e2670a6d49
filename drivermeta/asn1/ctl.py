from __future__ import annotations

from asn1crypto.algos import DigestAlgorithm, DigestAlgorithmId
from asn1crypto.cms import (
    ContentInfo,
    ContentType,
    EncapsulatedContentInfo,
    SetOfAny,
)
from asn1crypto.core import (
    Integer,
    ObjectIdentifier,
    OctetString,
    Sequence,
    SequenceOf,
    SetOf,
)
from asn1crypto.x509 import Extensions, Time

# Based on https://winprotocoldoc.blob.core.windows.net/productionwindowsarchives/WinArchive/%5bMS-CAESO%5d.pdf
#
# Only the container is described here. The catalog-level name/value attributes live
# in ctlExtensions and are decoded by drivermeta.catalog.metadata; the per-member
# attributes are kept as opaque values.


class CTLVersion(Integer):  # type: ignore[misc]
    """Version of the CTL structure::

    CTLVersion ::= INTEGER {v1(0)}
    """

    _map = {
        0: "v1",
    }


class SubjectUsageObjectIdentifier(ObjectIdentifier):  # type: ignore[misc]
    _map = {
        "1.3.6.1.4.1.311.10.3.9": "microsoft_root_list_signer",
        "1.3.6.1.4.1.311.12.1.1": "microsoft_catalog_list",
        "1.3.6.1.4.1.311.20.1": "microsoft_auto_enroll_ctl_usage",
    }


class SubjectUsage(SequenceOf):  # type: ignore[misc]
    """SubjectUsage ::= EnhancedKeyUsage"""

    _child_spec = SubjectUsageObjectIdentifier


class ListIdentifier(OctetString):  # type: ignore[misc]
    """ListIdentifier ::= OCTETSTRING"""


class SubjectIdentifier(OctetString):  # type: ignore[misc]
    """SubjectIdentifier ::= OCTETSTRING"""


class SubjectAttribute(Sequence):  # type: ignore[misc]
    _fields = [
        ("type", ObjectIdentifier),
        ("values", SetOfAny),
    ]


class SubjectAttributes(SetOf):  # type: ignore[misc]
    _child_spec = SubjectAttribute


class TrustedSubject(Sequence):  # type: ignore[misc]
    """A catalog member, i.e. a file hash with its attributes::

    TrustedSubject ::= SEQUENCE{
       subjectIdentifier SubjectIdentifier,
       subjectAttributes Attributes OPTIONAL
    }
    """

    _fields = [
        ("subject_identifier", SubjectIdentifier),
        ("subject_attributes", SubjectAttributes, {"optional": True}),
    ]


class TrustedSubjects(SequenceOf):  # type: ignore[misc]
    """TrustedSubjects ::= SEQUENCE OF TrustedSubject"""

    _child_spec = TrustedSubject


class CertificateTrustList(Sequence):  # type: ignore[misc]
    """CTL structure, as used by catalog files::

    CertificateTrustList ::= SEQUENCE {
        version CTLVersion DEFAULT v1,
        subjectUsage SubjectUsage,
        listIdentifier ListIdentifier OPTIONAL,
        sequenceNumber HUGEINTEGER OPTIONAL,
        ctlThisUpdate ChoiceOfTime,
        ctlNextUpdate ChoiceOfTime OPTIONAL,
        subjectAlgorithm AlgorithmIdentifier,
        trustedSubjects TrustedSubjects OPTIONAL,
        ctlExtensions [0] EXPLICIT Extensions OPTIONAL
    }
    """

    _fields = [
        ("version", CTLVersion, {"default": "v1"}),
        ("subject_usage", SubjectUsage),
        ("list_identifier", ListIdentifier, {"optional": True}),
        ("sequence_number", Integer, {"optional": True}),
        ("ctl_this_update", Time),
        ("ctl_next_update", Time, {"optional": True}),
        ("subject_algorithm", DigestAlgorithm),
        ("trusted_subjects", TrustedSubjects, {"optional": True}),
        ("ctl_extensions", Extensions, {"optional": True, "explicit": 0}),
    ]


# Add CTL to acceptable options
ContentType._map["1.3.6.1.4.1.311.10.1"] = "microsoft_ctl"
ContentInfo._oid_specs["microsoft_ctl"] = EncapsulatedContentInfo._oid_specs[
    "microsoft_ctl"
] = CertificateTrustList

# Add the catalog list member as digest algorithm
DigestAlgorithmId._map["1.3.6.1.4.1.311.12.1.2"] = "microsoft_catalog_list_member"
DigestAlgorithmId._map["1.3.6.1.4.1.311.12.1.3"] = "microsoft_catalog_list_member_v2"
