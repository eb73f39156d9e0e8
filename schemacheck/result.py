"""Validation results: failures, annotations and schema errors."""

from typing import Any, Dict, List, NamedTuple

from schemacheck.errors import SchemaError


class Failure(NamedTuple):
    """A keyword the instance did not satisfy."""
    location: str
    keyword: str
    message: str
    schema_path: str = '#'

    def __str__(self) -> str:
        return f"#{self.location}: [{self.keyword}] {self.message}"


class Annotation(NamedTuple):
    """A non-asserting keyword value attached to an instance location."""
    location: str
    keyword: str
    value: Any


class ValidationResult:
    """Result of validating a JSON instance against a schema."""

    def __init__(self, failures: List[Failure] = None, annotations: List[Annotation] = None,
                 schema_errors: List[SchemaError] = None, instance_path: str = None):
        self.failures = failures or []
        self.annotations = annotations or []
        self.schema_errors = schema_errors or []
        self.instance_path = instance_path

    @property
    def is_valid(self) -> bool:
        """True when no keyword failed; schema errors are reported separately."""
        return not self.failures

    @property
    def succeeded(self) -> bool:
        """True when no keyword failed and no schema error was recorded.

        Combinators and conditionals decide on this, so a branch whose
        references could not be evaluated never counts as a match.
        """
        return not self.failures and not self.schema_errors

    @property
    def errors(self) -> List[str]:
        """Failure messages followed by schema error messages."""
        return [str(f) for f in self.failures] + [str(e) for e in self.schema_errors]

    def fail(self, location: str, keyword: str, message: str, schema_path: str = '#') -> None:
        self.failures.append(Failure(location, keyword, message, schema_path))

    def annotate(self, location: str, keyword: str, value: Any) -> None:
        self.annotations.append(Annotation(location, keyword, value))

    def merge(self, other: "ValidationResult", keep_failures: bool = True) -> None:
        """Appends another result's records to this one; schema errors are always kept."""
        if keep_failures:
            self.failures.extend(other.failures)
        self.annotations.extend(other.annotations)
        self.schema_errors.extend(other.schema_errors)

    def annotations_at(self, location: str) -> Dict[str, List[Any]]:
        """Groups the annotation values recorded for one instance location by keyword."""
        grouped: Dict[str, List[Any]] = {}
        for annotation in self.annotations:
            if annotation.location == location:
                grouped.setdefault(annotation.keyword, []).append(annotation.value)
        return grouped

    def raise_for_schema_errors(self) -> None:
        """Raises the first schema error encountered during validation, if any."""
        if self.schema_errors:
            raise self.schema_errors[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'valid': self.is_valid,
            'instance': self.instance_path,
            'failures': [f._asdict() for f in self.failures],
            'annotations': [a._asdict() for a in self.annotations],
            'schemaErrors': [{'type': type(e).__name__, 'message': e.message, 'path': e.path}
                             for e in self.schema_errors],
        }

    def __str__(self) -> str:
        if self.is_valid:
            return "✓ Valid" + (f": {self.instance_path}" if self.instance_path else "")
        prefix = f"{self.instance_path}: " if self.instance_path else ""
        return f"✗ Invalid: {prefix}" + "; ".join(self.errors)

    def __repr__(self) -> str:
        return f"ValidationResult(is_valid={self.is_valid}, errors={self.errors})"
