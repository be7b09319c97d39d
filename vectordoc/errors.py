"""
Exception types for vectordoc.

Encoding and decoding failures are raised synchronously to the caller of the
codec; transport failures come from the HTTP layer.
"""


class VectorDocError(Exception):
    """Base class for all vectordoc errors."""


class EncodingError(VectorDocError):
    """A record's attributes cannot be serialized to the wire format."""


class DecodingError(VectorDocError):
    """Wire bytes are not a valid record for the target type."""


class TransportError(VectorDocError):
    """Error communicating with the store."""


class ServerError(TransportError):
    """The store answered, but rejected the request.

    Raised for a response envelope carrying a non-zero ``code``. Malformed
    filter predicates surface this way.
    """

    def __init__(self, code: int, message: str = ""):
        super().__init__(f"code: {code}, message: {message}")
        self.code = code
        self.message = message
