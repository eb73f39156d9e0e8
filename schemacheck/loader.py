"""Parsing and loading of schema and instance documents.

The validator never performs I/O. Documents referenced by $ref are loaded
here, ahead of validation, into a DocumentCache that the resolver queries.
"""

import json
import logging
import os
from collections import deque
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple
from urllib.parse import ParseResult, urldefrag, urlparse, unquote

import requests
import yaml

from schemacheck.errors import MalformedJSON, UnresolvableReference
from schemacheck.schema import SchemaDocument, check_schema, collect_references, join_uri

logger = logging.getLogger(__name__)

YAML_SUFFIXES = ('.yaml', '.yml')


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a valid JSON number")


def _unique_object(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    obj: Dict[str, Any] = {}
    for key, value in pairs:
        if key in obj:
            raise ValueError(f"Duplicate object key {key!r}")
        obj[key] = value
    return obj


def parse_json(text: str, source: str = '<string>') -> Any:
    """Parses JSON text, preserving object key order.

    Args:
        text: The JSON text
        source: Name of the document for error messages

    Returns:
        The parsed JSON value

    Raises:
        MalformedJSON: If the text is not valid JSON, uses NaN/Infinity or repeats an object key
    """
    try:
        return json.loads(text, object_pairs_hook=_unique_object, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise MalformedJSON(
            f"Document is not valid JSON ({e.msg}) at line {e.lineno} column {e.colno}",
            source, e.lineno, e.colno) from e
    except ValueError as e:
        raise MalformedJSON(f"Document is not valid JSON ({e})", source) from e


def location_to_uri(location: str) -> str:
    """Turns a file system path into a file:// URI; URIs are returned unchanged."""
    parsed = urlparse(location)
    if parsed.scheme and len(parsed.scheme) > 1:
        return location
    return Path(location).resolve().as_uri()


def fetch_content(url: str | ParseResult) -> str:
    """
    Fetches the text of a document from an http(s) URL, a file URL or a path.

    Args:
        url (str or ParseResult): The location to fetch.

    Returns:
        str: The fetched content.

    Raises:
        UnresolvableReference: If the document cannot be retrieved.
    """
    parsed_url = urlparse(url) if isinstance(url, str) else url
    scheme = parsed_url.scheme

    if scheme in ['http', 'https']:
        try:
            response = requests.get(parsed_url.geturl(), timeout=30)
            response.raise_for_status()
        except requests.RequestException as e:
            raise UnresolvableReference(f"Unable to fetch document: {e}", parsed_url.geturl()) from e
        return response.text

    if scheme == 'file':
        file_path = unquote(parsed_url.path)
        # On Windows, a file URL might start with a '/' but it's not part of the actual path
        if os.name == 'nt' and file_path.startswith('/'):
            file_path = file_path[1:]
    elif not scheme or len(scheme) == 1:
        # plain path, possibly with a Windows drive letter
        file_path = parsed_url.geturl()
    else:
        raise UnresolvableReference(f"Unsupported URL scheme: {scheme}", parsed_url.geturl())

    try:
        with open(file_path, 'r', encoding='utf-8') as file:
            return file.read()
    except FileNotFoundError as e:
        raise UnresolvableReference("Document not found", file_path) from e
    except OSError as e:
        raise UnresolvableReference(f"Unable to read document: {e}", file_path) from e


def load_document(location: str) -> Any:
    """Loads a JSON or YAML document from a path or URL."""
    logger.debug("Loading document %s", location)
    content = fetch_content(location)
    if urlparse(location).path.lower().endswith(YAML_SUFFIXES):
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise MalformedJSON(f"Document is not valid YAML ({e})", location) from e
    return parse_json(content, location)


def iter_instances(content: str, source: str, expect_array: bool = False) -> Iterator[Tuple[Any, str]]:
    """Yields (instance, label) pairs from a file's content.

    The content may be a single JSON value, an array of instances (unless
    expect_array says the array itself is the instance) or JSON Lines.
    """
    content = content.strip()
    try:
        data = parse_json(content, source)
    except MalformedJSON:
        if '\n' not in content:
            raise
        for i, line in enumerate(content.split('\n')):
            line = line.strip()
            if line:
                yield parse_json(line, f"{source}:{i + 1}"), f"{source}:{i + 1}"
        return
    if isinstance(data, list) and not expect_array:
        for i, item in enumerate(data):
            yield item, f"{source}[{i}]"
    else:
        yield data, source


class DocumentCache:
    """URI -> schema document mapping consulted by the reference resolver.

    Every $id-declared resource of every added document is indexed as well,
    so a $ref may name either a retrieval URI or an $id.
    """

    def __init__(self) -> None:
        self.documents: Dict[str, SchemaDocument] = {}
        self.resources: Dict[str, Tuple[Any, SchemaDocument]] = {}

    def add(self, uri: str, schema: Any) -> SchemaDocument:
        """Registers a parsed schema under a URI and indexes its $ids.

        Raises:
            InvalidSchema: If the schema fails its load-time checks
        """
        check_schema(schema)
        document = SchemaDocument(schema, uri)
        self.documents[document.uri] = document
        for resource_uri, (node, _) in document.resources.items():
            self.resources[resource_uri] = (node, document)
        logger.debug("Registered %r", document)
        return document

    def get(self, uri: str) -> Optional[SchemaDocument]:
        return self.documents.get(urldefrag(uri)[0])

    def find_resource(self, uri: str) -> Optional[Tuple[Any, SchemaDocument]]:
        """Returns (schema node, owning document) for an absolute URI without fragment."""
        return self.resources.get(uri)

    def __contains__(self, uri: str) -> bool:
        return urldefrag(uri)[0] in self.resources

    def __len__(self) -> int:
        return len(self.documents)

    def preload_references(self, document: SchemaDocument,
                           fetch: Callable[[str], Any] = load_document) -> List[str]:
        """Loads every external document reachable through $ref.

        Args:
            document: A document already added to this cache
            fetch: Loader for a URI, load_document by default

        Returns:
            The URIs that were loaded
        """
        loaded = []
        pending = deque([document])
        while pending:
            current = pending.popleft()
            for base_uri, ref in collect_references(current.schema, current.uri):
                target = urldefrag(join_uri(base_uri, ref))[0]
                if not target or target in self:
                    continue
                logger.debug("Preloading %s referenced from %s", target, current.uri or '<root>')
                pending.append(self.add(target, fetch(target)))
                loaded.append(target)
        return loaded
