"""The schema model: load-time checks and $id indexing.

A schema is either a boolean or a dict of keywords. Keywords that hold
subschemas are listed in the tables below; everything else is treated as
plain data (so "enum": [{"$ref": ...}] is never followed).
"""

# pylint: disable=too-many-branches

import logging
import re
from typing import Any, Dict, Iterator, List, Tuple
from urllib.parse import urldefrag, urljoin

from jsonpointer import JsonPointer

from schemacheck.errors import InvalidSchema
from schemacheck.values import TYPE_NAMES, find_duplicates, is_integer, is_number

logger = logging.getLogger(__name__)

# keyword -> single subschema
SCHEMA_KEYWORDS = (
    'additionalItems', 'additionalProperties', 'contains', 'not',
    'propertyNames', 'if', 'then', 'else',
)
# keyword -> non-empty array of subschemas
SCHEMA_ARRAY_KEYWORDS = ('allOf', 'anyOf', 'oneOf')
# keyword -> object of name/pattern -> subschema
SCHEMA_MAP_KEYWORDS = ('properties', 'patternProperties', 'definitions')

NUMBER_KEYWORDS = ('minimum', 'maximum', 'exclusiveMinimum', 'exclusiveMaximum')
COUNT_KEYWORDS = (
    'minLength', 'maxLength', 'minItems', 'maxItems', 'minProperties', 'maxProperties',
)
STRING_KEYWORDS = ('$ref', '$id', '$schema', '$comment', 'format', 'title', 'description')
BOOLEAN_KEYWORDS = ('uniqueItems', 'readOnly', 'writeOnly')

Pointer = Tuple[Any, ...]


def schema_path(parts: Pointer) -> str:
    """Renders pointer parts as a URI fragment pointer, e.g. #/properties/a~1b."""
    return '#' + JsonPointer.from_parts(list(parts)).path


def join_uri(base: str, ref: str) -> str:
    """Resolves a reference against a base URI.

    Fragment-only references keep the document part of the base even when the
    base is relative or uses a non-hierarchical scheme such as urn.
    """
    if ref.startswith('#'):
        return urldefrag(base)[0] + ref
    if not base:
        return ref
    return urljoin(base, ref)


def is_schema(value: Any) -> bool:
    return isinstance(value, (bool, dict))


def iter_subschemas(schema: Any, path: Pointer = ()) -> Iterator[Tuple[Pointer, Any]]:
    """Yields (pointer parts, subschema) for the direct subschemas of a schema."""
    if not isinstance(schema, dict):
        return
    for keyword in SCHEMA_KEYWORDS:
        if keyword in schema:
            yield path + (keyword,), schema[keyword]
    for keyword in SCHEMA_ARRAY_KEYWORDS:
        if isinstance(schema.get(keyword), list):
            for index, subschema in enumerate(schema[keyword]):
                yield path + (keyword, index), subschema
    for keyword in SCHEMA_MAP_KEYWORDS:
        if isinstance(schema.get(keyword), dict):
            for name, subschema in schema[keyword].items():
                yield path + (keyword, name), subschema
    items = schema.get('items')
    if isinstance(items, list):
        for index, subschema in enumerate(items):
            yield path + ('items', index), subschema
    elif items is not None:
        yield path + ('items',), items
    dependencies = schema.get('dependencies')
    if isinstance(dependencies, dict):
        for name, dependency in dependencies.items():
            if is_schema(dependency):
                yield path + ('dependencies', name), dependency


def walk_schema(schema: Any, path: Pointer = ()) -> Iterator[Tuple[Pointer, Any]]:
    """Yields every schema node depth first, starting with the schema itself."""
    yield path, schema
    for child_path, child in iter_subschemas(schema, path):
        yield from walk_schema(child, child_path)


class SchemaDocument:
    """A parsed schema document with its $id-declared resources indexed.

    Attributes:
        schema: The root schema node
        uri: The URI the document was registered under
        base_uri: The root's base URI after applying a root $id
        resources: Absolute URI (no fragment) -> (schema node, pointer parts)
        anchors: URI with plain-name fragment -> schema node
    """

    def __init__(self, schema: Any, uri: str = ''):
        self.schema = schema
        self.uri = urldefrag(uri)[0]
        self.resources: Dict[str, Tuple[Any, Pointer]] = {self.uri: (schema, ())}
        self.anchors: Dict[str, Any] = {}
        self.base_uri = self.uri
        self._index(schema, self.uri, ())
        if isinstance(schema, dict) and isinstance(schema.get('$id'), str):
            self.base_uri = urldefrag(join_uri(self.uri, schema['$id']))[0]

    def _index(self, schema: Any, base_uri: str, path: Pointer) -> None:
        if isinstance(schema, dict) and isinstance(schema.get('$id'), str):
            base_uri = join_uri(base_uri, schema['$id'])
            document_uri, fragment = urldefrag(base_uri)
            if fragment:
                self.anchors[base_uri] = schema
            else:
                self.resources.setdefault(document_uri, (schema, path))
            logger.debug("Indexed $id %s at %s", base_uri, schema_path(path))
        for child_path, child in iter_subschemas(schema, path):
            self._index(child, base_uri, child_path)

    def find_anchor(self, document_uri: str, name: str) -> Any:
        """Returns the subschema declaring $id "<document_uri>#<name>", or None."""
        return self.anchors.get(f"{document_uri}#{name}")

    def __repr__(self) -> str:
        return f"SchemaDocument(uri={self.uri!r}, resources={sorted(self.resources)})"


def _check_count(schema: Dict[str, Any], keyword: str, path: Pointer) -> None:
    value = schema[keyword]
    if not is_integer(value) or value < 0:
        raise InvalidSchema(f"'{keyword}' must be a non-negative integer, got {value!r}",
                            schema_path(path + (keyword,)))


def _check_pattern(pattern: Any, path: Pointer) -> None:
    if not isinstance(pattern, str):
        raise InvalidSchema(f"Regular expression must be a string, got {pattern!r}", schema_path(path))
    try:
        re.compile(pattern)
    except re.error as e:
        raise InvalidSchema(f"Invalid regular expression {pattern!r}: {e}", schema_path(path)) from e


def _check_unique_strings(values: Any, keyword: str, path: Pointer) -> None:
    location = schema_path(path)
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise InvalidSchema(f"'{keyword}' must be an array of strings", location)
    if len(set(values)) != len(values):
        raise InvalidSchema(f"'{keyword}' must not contain duplicate names", location)


def _check_keywords(schema: Dict[str, Any], path: Pointer) -> None:
    """Checks the keywords of one object schema, without recursing."""
    if 'type' in schema:
        types = schema['type']
        names = types if isinstance(types, list) else [types]
        for name in names:
            if name not in TYPE_NAMES:
                raise InvalidSchema(f"Unknown type {name!r}", schema_path(path + ('type',)))
        if len(set(names)) != len(names):
            raise InvalidSchema("'type' must not contain duplicate names", schema_path(path + ('type',)))

    if 'enum' in schema:
        enum = schema['enum']
        if not isinstance(enum, list):
            raise InvalidSchema("'enum' must be an array", schema_path(path + ('enum',)))
        duplicates = find_duplicates(enum)
        if duplicates:
            raise InvalidSchema(f"'enum' contains duplicate value {enum[duplicates[0]]!r}",
                                schema_path(path + ('enum', duplicates[0])))

    if 'multipleOf' in schema:
        divisor = schema['multipleOf']
        if not is_number(divisor) or divisor <= 0:
            raise InvalidSchema(f"'multipleOf' must be a number greater than 0, got {divisor!r}",
                                schema_path(path + ('multipleOf',)))

    for keyword in NUMBER_KEYWORDS:
        if keyword in schema and not is_number(schema[keyword]):
            raise InvalidSchema(f"'{keyword}' must be a number, got {schema[keyword]!r}",
                                schema_path(path + (keyword,)))

    for keyword in COUNT_KEYWORDS:
        if keyword in schema:
            _check_count(schema, keyword, path)

    for keyword in STRING_KEYWORDS:
        if keyword in schema and not isinstance(schema[keyword], str):
            raise InvalidSchema(f"'{keyword}' must be a string", schema_path(path + (keyword,)))

    for keyword in BOOLEAN_KEYWORDS:
        if keyword in schema and not isinstance(schema[keyword], bool):
            raise InvalidSchema(f"'{keyword}' must be a boolean", schema_path(path + (keyword,)))

    if 'pattern' in schema:
        _check_pattern(schema['pattern'], path + ('pattern',))

    if 'required' in schema:
        _check_unique_strings(schema['required'], 'required', path + ('required',))

    for keyword in SCHEMA_ARRAY_KEYWORDS:
        if keyword in schema:
            value = schema[keyword]
            if not isinstance(value, list) or not value:
                raise InvalidSchema(f"'{keyword}' must be a non-empty array of schemas",
                                    schema_path(path + (keyword,)))

    for keyword in SCHEMA_MAP_KEYWORDS:
        if keyword in schema and not isinstance(schema[keyword], dict):
            raise InvalidSchema(f"'{keyword}' must be an object", schema_path(path + (keyword,)))

    if isinstance(schema.get('patternProperties'), dict):
        for pattern in schema['patternProperties']:
            _check_pattern(pattern, path + ('patternProperties', pattern))

    if 'dependencies' in schema:
        dependencies = schema['dependencies']
        if not isinstance(dependencies, dict):
            raise InvalidSchema("'dependencies' must be an object", schema_path(path + ('dependencies',)))
        for name, dependency in dependencies.items():
            if not is_schema(dependency):
                _check_unique_strings(dependency, 'dependencies', path + ('dependencies', name))

    if 'items' in schema and not isinstance(schema['items'], list) and not is_schema(schema['items']):
        raise InvalidSchema("'items' must be a schema or an array of schemas", schema_path(path + ('items',)))


def check_schema(schema: Any) -> None:
    """Checks a schema and all of its subschemas for load-time errors.

    Args:
        schema: The schema to check

    Raises:
        InvalidSchema: On the first malformed keyword found
    """
    for path, node in walk_schema(schema):
        if not is_schema(node):
            raise InvalidSchema(f"Schema must be an object or a boolean, got {type(node).__name__}",
                                schema_path(path))
        if isinstance(node, dict):
            _check_keywords(node, path)


def collect_references(schema: Any, base_uri: str = '') -> List[Tuple[str, str]]:
    """Returns (base URI, $ref) for every $ref in a schema, in document order."""
    references = []

    def collect(node: Any, base_uri: str) -> None:
        if not isinstance(node, dict):
            return
        if isinstance(node.get('$id'), str):
            base_uri = join_uri(base_uri, node['$id'])
        if isinstance(node.get('$ref'), str):
            references.append((base_uri, node['$ref']))
        for _, child in iter_subschemas(node):
            collect(child, base_uri)

    collect(schema, base_uri)
    return references
