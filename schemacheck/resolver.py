"""Resolution of $ref against $id scopes and the document cache."""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, NamedTuple, Optional, Set, Tuple
from urllib.parse import urldefrag, unquote

from jsonpointer import JsonPointer, JsonPointerException

from schemacheck.errors import CyclicReference, InvalidPointer, UnresolvableReference
from schemacheck.loader import DocumentCache
from schemacheck.schema import is_schema, join_uri

logger = logging.getLogger(__name__)


class ResolvedRef(NamedTuple):
    """A $ref target: the schema node plus the scope it establishes."""
    node: Any
    base_uri: str
    document_uri: str
    pointer: str


class ValidationContext:
    """Per-call validation state.

    Holds the current base URI, the instance and schema locations, and the set
    of references being evaluated. Child contexts share the active reference
    set, which belongs to a single top-level validate call.
    """

    def __init__(self, base_uri: str = '', instance_path: Tuple[Any, ...] = (),
                 schema_path: Tuple[Any, ...] = (), active_refs: Optional[Set[Tuple[str, str, str]]] = None):
        self.base_uri = base_uri
        self.instance_path = instance_path
        self.schema_path = schema_path
        self.active_refs = active_refs if active_refs is not None else set()

    @property
    def location(self) -> str:
        """JSON pointer of the instance location, '' for the root."""
        return JsonPointer.from_parts(list(self.instance_path)).path

    @property
    def schema_location(self) -> str:
        return '#' + JsonPointer.from_parts(list(self.schema_path)).path

    def descend(self, instance_part: Any = None, schema_parts: Tuple[Any, ...] = (),
                base_uri: Optional[str] = None) -> 'ValidationContext':
        instance_path = self.instance_path if instance_part is None else self.instance_path + (instance_part,)
        return ValidationContext(
            self.base_uri if base_uri is None else base_uri,
            instance_path,
            self.schema_path + tuple(schema_parts),
            self.active_refs)

    def enter_scope(self, schema: Any) -> 'ValidationContext':
        """Applies a schema's $id to the base URI."""
        if isinstance(schema, dict) and isinstance(schema.get('$id'), str):
            return ValidationContext(join_uri(self.base_uri, schema['$id']), self.instance_path,
                                     self.schema_path, self.active_refs)
        return self

    @contextmanager
    def guard(self, target: ResolvedRef) -> Iterator[None]:
        """Marks a reference as being evaluated at the current instance location.

        Raises:
            CyclicReference: If the same reference is already being evaluated
                at this instance location
        """
        key = (target.document_uri, target.pointer, self.location)
        if key in self.active_refs:
            raise CyclicReference(
                f"$ref to '{target.document_uri}#{target.pointer}' re-enters itself", self.schema_location)
        self.active_refs.add(key)
        try:
            yield
        finally:
            self.active_refs.discard(key)


class RefResolver:
    """Resolves references using only the documents already in a cache."""

    def __init__(self, cache: DocumentCache):
        self.cache = cache

    def resolve(self, ref: str, base_uri: str = '') -> ResolvedRef:
        """Resolves a reference against a base URI.

        Args:
            ref: The $ref value
            base_uri: The base URI of the enclosing $id scope

        Returns:
            The resolved target

        Raises:
            UnresolvableReference: If the document or anchor is unknown
            InvalidPointer: If a JSON pointer fragment is malformed or does not exist
        """
        uri = join_uri(base_uri, ref)
        document_uri, fragment = urldefrag(uri)
        found = self.cache.find_resource(document_uri)
        if found is None:
            raise UnresolvableReference(f"Cannot locate document '{document_uri}' for $ref '{ref}'", uri)
        node, document = found
        fragment = unquote(fragment)
        logger.debug("Resolving %s against %s", ref, base_uri or '<root>')

        if not fragment:
            return ResolvedRef(node, document_uri, document_uri, '')

        if fragment.startswith('/'):
            target, target_base = self._walk_pointer(node, document_uri, fragment, uri)
            return ResolvedRef(target, target_base, document_uri, fragment)

        anchor = document.find_anchor(document_uri, fragment)
        if anchor is None:
            matches = [schema for anchor_uri, schema in document.anchors.items()
                       if urldefrag(anchor_uri)[1] == fragment]
            if not matches:
                raise UnresolvableReference(f"No subschema declares anchor '{fragment}'", uri)
            anchor = matches[0]
        return ResolvedRef(anchor, document_uri, document_uri, fragment)

    @staticmethod
    def _walk_pointer(node: Any, base_uri: str, fragment: str, uri: str) -> Tuple[Any, str]:
        try:
            pointer = JsonPointer(fragment)
            target = node
            for part in pointer.parts:
                if target is not node and isinstance(target, dict) and isinstance(target.get('$id'), str):
                    base_uri = join_uri(base_uri, target['$id'])
                target = pointer.walk(target, part)
        except JsonPointerException as e:
            raise InvalidPointer(f"Cannot resolve JSON pointer '{fragment}': {e}", uri) from e
        if not is_schema(target):
            raise InvalidPointer(f"JSON pointer '{fragment}' does not point at a schema", uri)
        # the returned base is the target's own scope
        if target is not node and isinstance(target, dict) and isinstance(target.get('$id'), str):
            base_uri = join_uri(base_uri, target['$id'])
        return target, base_uri
