"""Validator configuration."""

import os
from dataclasses import dataclass, replace
from typing import Optional

_TRUE_VALUES = {"1", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "no", "n", "off"}


@dataclass(frozen=True)
class ValidatorConfig:
    """Options that change how keywords are evaluated.

    Attributes:
        assert_formats: Known formats fail validation when not matched;
            when False every "format" is an annotation only
        multiple_of_tolerance: Absolute tolerance when checking that a
            floating point quotient is a whole number
        collect_annotations: Record title/description/default/examples etc.
    """
    assert_formats: bool = True
    multiple_of_tolerance: float = 1e-9
    collect_annotations: bool = True

    @classmethod
    def from_env(cls, prefix: str = "SCHEMACHECK_") -> "ValidatorConfig":
        """Builds a configuration from environment variables, e.g. SCHEMACHECK_ASSERT_FORMATS=0."""
        config = cls()
        assert_formats = _env_bool(f"{prefix}ASSERT_FORMATS")
        if assert_formats is not None:
            config = replace(config, assert_formats=assert_formats)
        collect_annotations = _env_bool(f"{prefix}COLLECT_ANNOTATIONS")
        if collect_annotations is not None:
            config = replace(config, collect_annotations=collect_annotations)
        tolerance = os.environ.get(f"{prefix}MULTIPLE_OF_TOLERANCE", "").strip()
        if tolerance:
            try:
                value = float(tolerance)
            except ValueError as e:
                raise ValueError(f"{prefix}MULTIPLE_OF_TOLERANCE must be a number, got {tolerance!r}") from e
            if value < 0:
                raise ValueError(f"{prefix}MULTIPLE_OF_TOLERANCE must not be negative")
            config = replace(config, multiple_of_tolerance=value)
        return config


def _env_bool(name: str) -> Optional[bool]:
    value = os.environ.get(name, "").strip().lower()
    if not value:
        return None
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean value, got {value!r}")
