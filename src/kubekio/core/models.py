#!/usr/bin/env python3
"""
KUBEKIO CORE MODELS
-------------------
Defines the ResourceNode, the in-memory form of one Kubernetes manifest.

A ResourceNode wraps the ruamel.yaml round-trip tree of a document instead
of decoding it into a fixed structure. Fields the pipeline never looks at,
their order and their comments all survive a read-transform-write cycle,
and only the paths a filter explicitly touches are changed.

Author: KubeKio Team
Date: 2026-10-19
"""

import copy
import io
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ruamel.yaml import YAML, YAMLError
from ruamel.yaml.comments import CommentedMap

from kubekio.core.annotations import DOCUMENT_SEPARATOR
from kubekio.core.errors import FieldError, MalformedDocumentError

FieldPath = Union[str, Sequence[str]]

_ABSENT = object()


def new_yaml() -> YAML:
    """
    Returns a round-trip YAML instance with the canonical output style.
    Instances keep per-document state, so every call site gets its own.
    """
    yaml = YAML(typ='rt')
    yaml.preserve_quotes = True
    # Standard K8s: 2 spaces, sequences indented 4 with the dash at offset 2
    yaml.indent(mapping=2, sequence=4, offset=2)
    yaml.width = 4096
    return yaml


def _decode(text: Union[str, bytes]) -> str:
    if isinstance(text, bytes):
        try:
            return text.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise MalformedDocumentError(f"input is not valid UTF-8: {e}") from e
    # Remove Byte Order Mark if present
    return text.lstrip('\ufeff')


def _split_path(path: FieldPath) -> List[str]:
    keys = path.split('.') if isinstance(path, str) else list(path)
    if not keys or any(k == "" for k in keys):
        raise FieldError(f"invalid field path: {path!r}")
    return keys


class ResourceNode:
    """
    One structured configuration document.

    Accessors never fail on absent fields; they return an empty value.
    Mutators edit the underlying tree in place, so keys that already exist
    keep their position and new keys are appended at the end of their
    parent mapping.
    """

    def __init__(self, data: CommentedMap):
        if not isinstance(data, dict):
            raise MalformedDocumentError(
                f"resource must be a mapping, got {type(data).__name__}")
        if not isinstance(data, CommentedMap):
            data = CommentedMap(data)
        self._data = data
        # Maps added by the mutators, keyed by path, with what was there before
        self._created: Dict[Tuple[str, ...], Any] = {}

    @classmethod
    def parse(cls, text: Union[str, bytes]) -> "ResourceNode":
        """Parses exactly one YAML document into a node."""
        try:
            data = new_yaml().load(_decode(text))
        except YAMLError as e:
            raise MalformedDocumentError(f"invalid YAML: {e}", index=0) from e
        if data is None:
            raise MalformedDocumentError("empty document", index=0)
        return _wrap(data, 0)

    @property
    def data(self) -> CommentedMap:
        """The underlying round-trip tree."""
        return self._data

    def serialize(self) -> str:
        stream = io.StringIO()
        new_yaml().dump(self._data, stream)
        return stream.getvalue()

    def copy(self) -> "ResourceNode":
        """Deep copy, comments included."""
        clone = ResourceNode(copy.deepcopy(self._data))
        clone._created = dict(self._created)
        return clone

    # --- Accessors ---

    def get_field(self, path: FieldPath) -> Optional[Any]:
        current: Any = self._data
        for key in _split_path(path):
            if not isinstance(current, dict):
                return None
            current = current.get(key)
            if current is None:
                return None
        return current

    def _get_scalar(self, path: FieldPath) -> str:
        value = self.get_field(path)
        if value is None or isinstance(value, (dict, list)):
            return ""
        return str(value)

    def get_api_version(self) -> str:
        return self._get_scalar(("apiVersion",))

    def get_kind(self) -> str:
        return self._get_scalar(("kind",))

    def get_name(self) -> str:
        return self._get_scalar(("metadata", "name"))

    def get_namespace(self) -> str:
        return self._get_scalar(("metadata", "namespace"))

    def get_annotations(self) -> Dict[str, str]:
        """Returns a copy of metadata.annotations in document order."""
        annotations = self.get_field(("metadata", "annotations"))
        if not isinstance(annotations, dict):
            return {}
        return {str(k): "" if v is None else str(v) for k, v in annotations.items()}

    # --- Mutators ---

    def _mapping_at(self, keys: Sequence[str]) -> CommentedMap:
        """Walks to the mapping at keys, appending empty maps where missing."""
        current = self._data
        for depth, key in enumerate(keys):
            child = current.get(key)
            if child is None:
                path = tuple(keys[:depth + 1])
                self._created.setdefault(path, current.get(key, _ABSENT))
                child = CommentedMap()
                current[key] = child
            elif not isinstance(child, dict):
                walked = '.'.join(keys[:depth + 1])
                raise FieldError(f"field '{walked}' is not a mapping")
            current = child
        return current

    def set_field(self, path: FieldPath, value: Any) -> None:
        keys = _split_path(path)
        parent = self._mapping_at(keys[:-1])
        parent[keys[-1]] = value

    def set_annotation(self, key: str, value: Any) -> None:
        """Upserts an annotation. Existing keys keep their position."""
        annotations = self._mapping_at(("metadata", "annotations"))
        annotations[key] = str(value)

    def clear_annotation(self, key: str) -> bool:
        """
        Removes an annotation. Maps that set_annotation or set_field added
        are taken back out once they are empty again; maps that came from
        the source document are always kept. Returns False when the key was
        not present.
        """
        annotations = self.get_field(("metadata", "annotations"))
        if not isinstance(annotations, dict) or key not in annotations:
            return False
        del annotations[key]
        self._prune(("metadata", "annotations"))
        self._prune(("metadata",))
        return True

    def _prune(self, path: Tuple[str, ...]) -> None:
        """Restores an added map at path to its prior state if it is empty."""
        if path not in self._created:
            return
        parent = self.get_field(path[:-1]) if len(path) > 1 else self._data
        child = parent.get(path[-1], _ABSENT) if isinstance(parent, dict) else _ABSENT
        if child is _ABSENT:
            del self._created[path]
            return
        if not isinstance(child, dict) or child:
            return
        previous = self._created.pop(path)
        if previous is _ABSENT:
            del parent[path[-1]]
        else:
            parent[path[-1]] = previous

    def __repr__(self) -> str:
        return f"ResourceNode(kind={self.get_kind()!r}, name={self.get_name()!r})"


def _wrap(data: Any, index: int) -> ResourceNode:
    if not isinstance(data, dict):
        raise MalformedDocumentError(
            f"document {index}: expected a mapping, got {type(data).__name__}",
            index=index)
    return ResourceNode(data)


def parse_documents(text: Union[str, bytes]) -> List[ResourceNode]:
    """
    Parses a '---' separated stream into nodes, in stream order.
    Documents holding only comments or whitespace are skipped. Any failure
    discards the whole stream.
    """
    source = _decode(text)
    nodes = []
    index = 0
    try:
        for data in new_yaml().load_all(source):
            if data is not None:
                nodes.append(_wrap(data, index))
            index += 1
    except YAMLError as e:
        raise MalformedDocumentError(f"document {index}: {e}", index=index) from e
    return nodes


def serialize_documents(nodes: Iterable[ResourceNode]) -> str:
    """Serializes nodes into one stream with a separator between documents."""
    stream = io.StringIO()
    for i, node in enumerate(nodes):
        if i > 0:
            stream.write(DOCUMENT_SEPARATOR)
        stream.write(node.serialize())
    return stream.getvalue()
