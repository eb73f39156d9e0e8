"""Validates JSON instance files against JSON Schema files.

This module provides the file-level entry points used by the schemacheck
command line: loading the schema and everything it references, splitting
instance files into instances, and reporting results.
"""

import json
import logging
import sys
from dataclasses import replace
from typing import List, Optional, Tuple

from schemacheck.config import ValidatorConfig
from schemacheck.errors import SchemaError
from schemacheck.loader import DocumentCache, fetch_content, iter_instances, load_document, location_to_uri
from schemacheck.result import ValidationResult
from schemacheck.validator import Validator

logger = logging.getLogger(__name__)

EXIT_INVALID = 1
EXIT_SCHEMA_ERROR = 2


def build_validator(
    schema_file: str,
    ref_files: Optional[List[str]] = None,
    config: Optional[ValidatorConfig] = None
) -> Validator:
    """Loads a schema file and every document it references.

    Args:
        schema_file: Path or URL of the root schema
        ref_files: Additional schema documents to register before resolving
        config: Evaluation options

    Returns:
        A Validator whose document cache holds all referenced documents

    Raises:
        SchemaError: If a document is malformed, invalid or cannot be loaded
    """
    cache = DocumentCache()
    for ref_file in ref_files or []:
        cache.add(location_to_uri(ref_file), load_document(ref_file))
    schema_uri = location_to_uri(schema_file)
    validator = Validator(load_document(schema_file), cache=cache, config=config, base_uri=schema_uri)
    loaded = cache.preload_references(validator.document)
    for document in list(cache.documents.values()):
        loaded.extend(cache.preload_references(document))
    logger.debug("Loaded %d referenced documents for %s", len(loaded), schema_file)
    return validator


def validate_file(
    instance_file: str,
    validator: Validator
) -> List[ValidationResult]:
    """Validates JSON instance file(s) against a schema.

    Args:
        instance_file: Path to JSON file (single value, array of instances, or JSONL)
        validator: The validator for the schema

    Returns:
        List of ValidationResult for each instance in the file
    """
    content = fetch_content(instance_file)
    # a schema that expects an array validates the whole array as one instance
    schema = validator.schema
    expect_array = isinstance(schema, dict) and schema.get('type') == 'array'
    return [validator.validate(instance, path)
            for instance, path in iter_instances(content, instance_file, expect_array)]


def validate_json_instances(
    input_files: List[str],
    validator: Validator,
    verbose: bool = False
) -> Tuple[List[ValidationResult], int, int]:
    """Validates multiple JSON instance files against a schema.

    Args:
        input_files: List of JSON file paths to validate
        validator: The validator for the schema
        verbose: Whether to print validation results

    Returns:
        Tuple of (results, valid_count, invalid_count)
    """
    results: List[ValidationResult] = []
    valid_count = 0
    invalid_count = 0

    for input_file in input_files:
        for result in validate_file(input_file, validator):
            results.append(result)
            if result.is_valid:
                valid_count += 1
            else:
                invalid_count += 1
            if verbose:
                print(result)

    return results, valid_count, invalid_count


def write_report(results: List[ValidationResult], out: str) -> None:
    """Writes the results as a JSON report."""
    report = {
        'valid': all(r.is_valid for r in results),
        'results': [r.to_dict() for r in results],
    }
    with open(out, 'w', encoding='utf-8') as f:
        json.dump(report, f, indent=2, ensure_ascii=False, default=str)


# Command entry point for schemacheck CLI
def validate(
    input: List[str],
    schema: str,
    ref: Optional[List[str]] = None,
    no_format_assertion: bool = False,
    quiet: bool = False,
    out: Optional[str] = None
) -> None:
    """Validates JSON instances against a JSON Schema.

    Args:
        input: List of JSON files to validate
        schema: Path or URL of the schema file
        ref: Extra schema documents available to $ref
        no_format_assertion: Treat "format" as an annotation only
        quiet: Suppress output, exit with code 0 if valid, 1 if invalid
        out: Optional path of a JSON report
    """
    config = ValidatorConfig.from_env()
    if no_format_assertion:
        config = replace(config, assert_formats=False)
    try:
        validator = build_validator(schema, ref, config)
    except SchemaError as e:
        print(f"Schema error ({type(e).__name__}): {e}")
        sys.exit(EXIT_SCHEMA_ERROR)

    try:
        results, valid_count, invalid_count = validate_json_instances(
            input_files=input,
            validator=validator,
            verbose=not quiet
        )
    except SchemaError as e:
        # an instance file could not be read or parsed
        print(f"Instance error ({type(e).__name__}): {e}")
        sys.exit(EXIT_SCHEMA_ERROR)

    if out:
        write_report(results, out)

    if not quiet:
        total = valid_count + invalid_count
        print(f"\nValidation summary: {valid_count}/{total} instances valid")

    if any(r.schema_errors for r in results):
        sys.exit(EXIT_SCHEMA_ERROR)
    if invalid_count > 0:
        sys.exit(EXIT_INVALID)


# Command entry point for schemacheck CLI
def check(input: List[str], quiet: bool = False) -> None:
    """Checks schema files for load-time errors without validating instances.

    Args:
        input: List of schema files
        quiet: Suppress output
    """
    failed = 0
    for schema_file in input:
        try:
            build_validator(schema_file)
        except SchemaError as e:
            failed += 1
            if not quiet:
                print(f"✗ {schema_file}: {type(e).__name__}: {e}")
        else:
            if not quiet:
                print(f"✓ {schema_file}")
    if failed:
        sys.exit(EXIT_SCHEMA_ERROR)
