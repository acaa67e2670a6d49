class DriverMetadataError(Exception):
    pass


class ParseError(DriverMetadataError):
    """Raised when a structure could not be parsed."""


class MalformedEncodingError(ParseError):
    """Raised when a DER structure does not have the expected tag/length shape."""


class TrustListUnavailableError(ParseError):
    """Raised when a file cannot be opened as a certificate trust list."""
