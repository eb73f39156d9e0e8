"""Validates JSON instances against JSON Schema (draft-07 vocabulary).

Every keyword of an object schema is evaluated independently and failures
are accumulated; a schema passes when none of its keywords failed. Keywords
that do not apply to the instance's kind are vacuously satisfied.
"""

# pylint: disable=too-many-public-methods, too-many-arguments, unused-argument

import json
import logging
import math
import re
import uuid
from decimal import Decimal, InvalidOperation, localcontext
from functools import lru_cache
from typing import Any, Callable, Dict, Iterator, Optional, Pattern

from schemacheck.config import ValidatorConfig
from schemacheck.errors import CyclicReference, UnresolvableReference
from schemacheck.formats import FormatChecker
from schemacheck.loader import DocumentCache
from schemacheck.resolver import RefResolver, ValidationContext
from schemacheck.result import Failure, ValidationResult
from schemacheck.values import describe, find_duplicates, is_number, json_equal, type_matches

logger = logging.getLogger(__name__)

ANNOTATION_KEYWORDS = ('title', 'description', 'default', 'examples', 'readOnly', 'writeOnly', '$comment')

# Enough digits for the remainder of any two finite doubles
_DECIMAL_PRECISION = 1100

Handler = Callable[[Any, Any, Dict[str, Any], ValidationContext, ValidationResult], None]


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> Pattern[str]:
    return re.compile(pattern)


def _show(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


class Validator:
    """Validates JSON instances against a schema.

    The schema is checked once at construction; validate() may then be
    called any number of times, concurrently, since each call owns its
    context and result.
    """

    KEYWORDS = {
        '$ref': '_ref',
        'type': '_type',
        'enum': '_enum',
        'const': '_const',
        'multipleOf': '_multiple_of',
        'minimum': '_minimum',
        'maximum': '_maximum',
        'exclusiveMinimum': '_exclusive_minimum',
        'exclusiveMaximum': '_exclusive_maximum',
        'minLength': '_min_length',
        'maxLength': '_max_length',
        'pattern': '_pattern',
        'format': '_format',
        'properties': '_properties',
        'patternProperties': '_pattern_properties',
        'additionalProperties': '_additional_properties',
        'required': '_required',
        'propertyNames': '_property_names',
        'minProperties': '_min_properties',
        'maxProperties': '_max_properties',
        'dependencies': '_dependencies',
        'items': '_items',
        'additionalItems': '_additional_items',
        'contains': '_contains',
        'minItems': '_min_items',
        'maxItems': '_max_items',
        'uniqueItems': '_unique_items',
        'allOf': '_all_of',
        'anyOf': '_any_of',
        'oneOf': '_one_of',
        'not': '_not',
        'if': '_if',
    }

    def __init__(self, schema: Any, cache: Optional[DocumentCache] = None,
                 config: Optional[ValidatorConfig] = None, base_uri: str = '',
                 format_checker: Optional[FormatChecker] = None):
        """Initialize the validator with a schema.

        Args:
            schema: The root schema (boolean or object)
            cache: Documents available to $ref; the root schema is added to it
            config: Evaluation options, defaults when omitted
            base_uri: URI the root schema is registered under; a fresh
                urn:uuid is used when empty
            format_checker: Recognizers for the "format" keyword

        Raises:
            InvalidSchema: If the schema fails its load-time checks
        """
        self.schema = schema
        self.config = config or ValidatorConfig()
        self.cache = cache if cache is not None else DocumentCache()
        self.document = self.cache.add(base_uri or f"urn:uuid:{uuid.uuid4()}", schema)
        self.resolver = RefResolver(self.cache)
        self.format_checker = format_checker or FormatChecker()
        self._handlers: Dict[str, Handler] = {
            keyword: getattr(self, method) for keyword, method in self.KEYWORDS.items()
        }
        self._unknown_formats = set()

    def validate(self, instance: Any, instance_path: str = None) -> ValidationResult:
        """Validates a JSON instance against the schema.

        Args:
            instance: The JSON value to validate
            instance_path: Optional label (file name, line) for reporting

        Returns:
            ValidationResult with failures, annotations and schema errors
        """
        context = ValidationContext(self.document.uri)
        result = self._evaluate(instance, self.schema, context)
        result.instance_path = instance_path
        return result

    def is_valid(self, instance: Any) -> bool:
        return self.validate(instance).is_valid

    def iter_failures(self, instance: Any) -> Iterator[Failure]:
        yield from self.validate(instance).failures

    def _evaluate(self, instance: Any, schema: Any, context: ValidationContext,
                  scoped: bool = False) -> ValidationResult:
        result = ValidationResult()
        if schema is True:
            return result
        if schema is False:
            result.fail(context.location, 'false', "False schema does not allow any value",
                        context.schema_location)
            return result

        if not scoped:
            context = context.enter_scope(schema)
        for keyword, value in schema.items():
            handler = self._handlers.get(keyword)
            if handler is not None:
                handler(value, instance, schema, context, result)
            elif keyword in ANNOTATION_KEYWORDS and self.config.collect_annotations:
                result.annotate(context.location, keyword, value)

        # annotations only survive on schemas that pass
        if result.failures:
            result.annotations = []
        return result

    def _descend(self, instance: Any, schema: Any, context: ValidationContext,
                 instance_part: Any = None, *schema_parts: Any) -> ValidationResult:
        return self._evaluate(instance, schema, context.descend(instance_part, schema_parts))

    @staticmethod
    def _fail(result: ValidationResult, context: ValidationContext, keyword: str, message: str) -> None:
        result.fail(context.location, keyword, message, context.descend(schema_parts=(keyword,)).schema_location)

    # --- references

    def _ref(self, ref, instance, schema, context, result):
        try:
            target = self.resolver.resolve(ref, context.base_uri)
        except UnresolvableReference as e:
            logger.debug("Unresolvable $ref %s: %s", ref, e)
            result.schema_errors.append(e)
            self._fail(result, context, '$ref', f"Cannot resolve $ref '{ref}': {e.message}")
            return
        try:
            with context.guard(target):
                sub = self._evaluate(instance, target.node,
                                     context.descend(None, ('$ref',), base_uri=target.base_uri), scoped=True)
        except CyclicReference as e:
            logger.debug("Cyclic $ref %s at %s", ref, e.path)
            result.schema_errors.append(e)
            self._fail(result, context, '$ref', f"$ref '{ref}' is cyclic")
            return
        result.merge(sub)

    # --- any instance

    def _type(self, types, instance, schema, context, result):
        names = types if isinstance(types, list) else [types]
        if not any(type_matches(instance, name) for name in names):
            expected = ' or '.join(names)
            self._fail(result, context, 'type', f"Expected {expected}, got {describe(instance)}")

    def _enum(self, enum, instance, schema, context, result):
        if not any(json_equal(instance, value) for value in enum):
            self._fail(result, context, 'enum', f"{_show(instance)} is not one of {_show(enum)}")

    def _const(self, const, instance, schema, context, result):
        if not json_equal(instance, const):
            self._fail(result, context, 'const', f"{_show(instance)} does not equal {_show(const)}")

    # --- numbers

    def _is_multiple(self, value, divisor) -> bool:
        if isinstance(value, int) and isinstance(divisor, int):
            return value % divisor == 0
        try:
            quotient = value / divisor
        except OverflowError:
            quotient = math.inf
        if math.isfinite(quotient):
            return math.isclose(quotient, round(quotient), rel_tol=0.0,
                                abs_tol=self.config.multiple_of_tolerance)
        with localcontext() as ctx:
            ctx.prec = _DECIMAL_PRECISION
            try:
                return Decimal(repr(value)) % Decimal(repr(divisor)) == 0
            except InvalidOperation:
                return False

    def _multiple_of(self, divisor, instance, schema, context, result):
        if is_number(instance) and not self._is_multiple(instance, divisor):
            self._fail(result, context, 'multipleOf', f"{_show(instance)} is not a multiple of {_show(divisor)}")

    def _minimum(self, minimum, instance, schema, context, result):
        if is_number(instance) and instance < minimum:
            self._fail(result, context, 'minimum', f"{_show(instance)} is less than the minimum of {_show(minimum)}")

    def _maximum(self, maximum, instance, schema, context, result):
        if is_number(instance) and instance > maximum:
            self._fail(result, context, 'maximum',
                       f"{_show(instance)} is greater than the maximum of {_show(maximum)}")

    def _exclusive_minimum(self, minimum, instance, schema, context, result):
        if is_number(instance) and instance <= minimum:
            self._fail(result, context, 'exclusiveMinimum',
                       f"{_show(instance)} is not greater than {_show(minimum)}")

    def _exclusive_maximum(self, maximum, instance, schema, context, result):
        if is_number(instance) and instance >= maximum:
            self._fail(result, context, 'exclusiveMaximum',
                       f"{_show(instance)} is not less than {_show(maximum)}")

    # --- strings

    def _min_length(self, length, instance, schema, context, result):
        if isinstance(instance, str) and len(instance) < length:
            self._fail(result, context, 'minLength', f"String is shorter than {length} characters")

    def _max_length(self, length, instance, schema, context, result):
        if isinstance(instance, str) and len(instance) > length:
            self._fail(result, context, 'maxLength', f"String is longer than {length} characters")

    def _pattern(self, pattern, instance, schema, context, result):
        if isinstance(instance, str) and not compile_pattern(pattern).search(instance):
            self._fail(result, context, 'pattern', f"{_show(instance)} does not match {pattern!r}")

    def _format(self, name, instance, schema, context, result):
        if self.config.collect_annotations:
            result.annotate(context.location, 'format', name)
        if not isinstance(instance, str) or not self.config.assert_formats:
            return
        conforms = self.format_checker.conforms(name, instance)
        if conforms is None:
            if name not in self._unknown_formats:
                self._unknown_formats.add(name)
                logger.warning("Unknown format %r is treated as an annotation", name)
        elif not conforms:
            self._fail(result, context, 'format', f"{_show(instance)} is not a valid {name}")

    # --- objects

    def _properties(self, properties, instance, schema, context, result):
        if not isinstance(instance, dict):
            return
        for name, subschema in properties.items():
            if name in instance:
                result.merge(self._descend(instance[name], subschema, context, name, 'properties', name))

    def _pattern_properties(self, patterns, instance, schema, context, result):
        if not isinstance(instance, dict):
            return
        for pattern, subschema in patterns.items():
            regex = compile_pattern(pattern)
            for name, value in instance.items():
                if regex.search(name):
                    result.merge(self._descend(value, subschema, context, name, 'patternProperties', pattern))

    def _additional_properties(self, additional, instance, schema, context, result):
        if not isinstance(instance, dict) or additional is True:
            return
        properties = schema.get('properties', {})
        patterns = [compile_pattern(p) for p in schema.get('patternProperties', {})]
        extras = [name for name in instance
                  if name not in properties and not any(regex.search(name) for regex in patterns)]
        if additional is False:
            if extras:
                names = ', '.join(f"'{name}'" for name in extras)
                self._fail(result, context, 'additionalProperties', f"Additional properties are not allowed ({names})")
            return
        for name in extras:
            result.merge(self._descend(instance[name], additional, context, name, 'additionalProperties'))

    def _required(self, required, instance, schema, context, result):
        if not isinstance(instance, dict):
            return
        for name in required:
            if name not in instance:
                self._fail(result, context, 'required', f"Missing required property '{name}'")

    def _property_names(self, names_schema, instance, schema, context, result):
        if not isinstance(instance, dict):
            return
        for name in instance:
            sub = self._descend(name, names_schema, context, name, 'propertyNames')
            # annotations describe values, not names
            sub.annotations = []
            result.merge(sub)

    def _min_properties(self, count, instance, schema, context, result):
        if isinstance(instance, dict) and len(instance) < count:
            self._fail(result, context, 'minProperties', f"Object has fewer than {count} properties")

    def _max_properties(self, count, instance, schema, context, result):
        if isinstance(instance, dict) and len(instance) > count:
            self._fail(result, context, 'maxProperties', f"Object has more than {count} properties")

    def _dependencies(self, dependencies, instance, schema, context, result):
        if not isinstance(instance, dict):
            return
        for name, dependency in dependencies.items():
            if name not in instance:
                continue
            if isinstance(dependency, list):
                for dependent in dependency:
                    if dependent not in instance:
                        self._fail(result, context, 'dependencies',
                                   f"Property '{name}' requires property '{dependent}'")
            else:
                result.merge(self._descend(instance, dependency, context, None, 'dependencies', name))

    # --- arrays

    def _items(self, items, instance, schema, context, result):
        if not isinstance(instance, list):
            return
        if isinstance(items, list):
            for index, (item, subschema) in enumerate(zip(instance, items)):
                result.merge(self._descend(item, subschema, context, index, 'items', index))
        else:
            for index, item in enumerate(instance):
                result.merge(self._descend(item, items, context, index, 'items'))

    def _additional_items(self, additional, instance, schema, context, result):
        items = schema.get('items')
        if not isinstance(instance, list) or not isinstance(items, list) or additional is True:
            return
        if len(instance) <= len(items):
            return
        if additional is False:
            self._fail(result, context, 'additionalItems',
                       f"Array has {len(instance)} items but only {len(items)} are allowed")
            return
        for index in range(len(items), len(instance)):
            result.merge(self._descend(instance[index], additional, context, index, 'additionalItems'))

    def _contains(self, contains, instance, schema, context, result):
        if not isinstance(instance, list):
            return
        matched = False
        for index, item in enumerate(instance):
            sub = self._descend(item, contains, context, index, 'contains')
            result.merge(sub, keep_failures=False)
            matched = matched or sub.succeeded
        if not matched:
            self._fail(result, context, 'contains', "No array item matches the 'contains' schema")

    def _min_items(self, count, instance, schema, context, result):
        if isinstance(instance, list) and len(instance) < count:
            self._fail(result, context, 'minItems', f"Array has fewer than {count} items")

    def _max_items(self, count, instance, schema, context, result):
        if isinstance(instance, list) and len(instance) > count:
            self._fail(result, context, 'maxItems', f"Array has more than {count} items")

    def _unique_items(self, unique, instance, schema, context, result):
        if not unique or not isinstance(instance, list):
            return
        duplicates = find_duplicates(instance)
        if duplicates:
            self._fail(result, context, 'uniqueItems',
                       f"Array items are not unique (duplicate at index {duplicates[0]})")

    # --- combinators

    def _all_of(self, subschemas, instance, schema, context, result):
        for index, subschema in enumerate(subschemas):
            result.merge(self._descend(instance, subschema, context, None, 'allOf', index))

    def _any_of(self, subschemas, instance, schema, context, result):
        subs = [self._descend(instance, subschema, context, None, 'anyOf', index)
                for index, subschema in enumerate(subschemas)]
        for sub in subs:
            result.merge(sub, keep_failures=False)
        if not any(sub.succeeded for sub in subs):
            self._fail(result, context, 'anyOf', f"Value does not match any of the {len(subs)} subschemas")

    def _one_of(self, subschemas, instance, schema, context, result):
        subs = [self._descend(instance, subschema, context, None, 'oneOf', index)
                for index, subschema in enumerate(subschemas)]
        for sub in subs:
            result.merge(sub, keep_failures=False)
        matched = [index for index, sub in enumerate(subs) if sub.succeeded]
        if len(matched) != 1:
            self._fail(result, context, 'oneOf',
                       f"Value must match exactly one subschema, matched {len(matched)} {matched}")

    def _not(self, subschema, instance, schema, context, result):
        sub = self._descend(instance, subschema, context, None, 'not')
        result.schema_errors.extend(sub.schema_errors)
        if sub.schema_errors:
            self._fail(result, context, 'not', "The 'not' schema could not be evaluated")
        elif sub.is_valid:
            self._fail(result, context, 'not', "Value must not match the 'not' schema")

    def _if(self, condition, instance, schema, context, result):
        sub = self._descend(instance, condition, context, None, 'if')
        result.merge(sub, keep_failures=False)
        if sub.schema_errors:
            self._fail(result, context, 'if', "The 'if' schema could not be evaluated")
            return
        branch = 'then' if sub.is_valid else 'else'
        if branch in schema:
            result.merge(self._descend(instance, schema[branch], context, None, branch))


def validate_instance(instance: Any, schema: Any, cache: Optional[DocumentCache] = None,
                      config: Optional[ValidatorConfig] = None) -> ValidationResult:
    """Validates a JSON instance against a schema in one call.

    Args:
        instance: The JSON value to validate
        schema: The schema (boolean or object)
        cache: Documents available to cross-document $ref
        config: Evaluation options

    Returns:
        ValidationResult with validation status and any errors

    Raises:
        InvalidSchema: If the schema fails its load-time checks
    """
    return Validator(schema, cache=cache, config=config).validate(instance)
