"""Schema-level errors raised by schemacheck.

Instance validation failures are never raised; they are collected in a
ValidationResult. The exceptions in this module signal that a schema or one
of its references cannot be used at all.
"""


class SchemaError(Exception):
    """Base class for errors in a schema or its references.

    Attributes:
        message: Human-readable error description
        path: JSON pointer to the offending location (schema or reference)
    """

    def __init__(self, message: str, path: str = "#"):
        self.message = message
        self.path = path
        super().__init__(f"{message} at {path}")


class InvalidSchema(SchemaError):
    """Raised when a schema violates a load-time constraint."""


class UnresolvableReference(SchemaError):
    """Raised when a $ref target document or anchor cannot be located."""


class InvalidPointer(UnresolvableReference):
    """Raised when a JSON pointer fragment is malformed or names a missing segment."""


class CyclicReference(SchemaError):
    """Raised when a $ref re-enters itself without consuming any of the instance."""


class MalformedJSON(SchemaError):
    """Raised when a document is not syntactically valid JSON."""

    def __init__(self, message: str, path: str = "#", lineno: int = 0, colno: int = 0):
        self.lineno = lineno
        self.colno = colno
        super().__init__(message, path)
