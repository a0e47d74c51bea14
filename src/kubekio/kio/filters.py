#!/usr/bin/env python3
"""
KUBEKIO FILTERS
---------------
The Filter capability and the general-purpose filters built on it.

A filter is any object with an `apply(nodes)` method returning the next
sequence. There is no base class: the Pipeline calls each one the same way.
All tunable behaviour is fixed at construction time.

Author: KubeKio Team
Date: 2026-10-19
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Sequence, Union

from kubekio.core.errors import ConfigurationError, FieldError, FilterError
from kubekio.core.models import ResourceNode


class Filter(Protocol):
    def apply(self, nodes: List[ResourceNode]) -> List[ResourceNode]:
        ...


def matches(node: ResourceNode, kind: Optional[str] = None, name: Optional[str] = None,
            namespace: Optional[str] = None) -> bool:
    """True if every selector that is set equals the node's field."""
    if kind is not None and node.get_kind() != kind:
        return False
    if name is not None and node.get_name() != name:
        return False
    if namespace is not None and node.get_namespace() != namespace:
        return False
    return True


@dataclass
class FilterFunc:
    """Adapts a plain callable to the Filter capability."""
    func: Callable[[List[ResourceNode]], List[ResourceNode]]
    name: Optional[str] = None

    def apply(self, nodes: List[ResourceNode]) -> List[ResourceNode]:
        return self.func(nodes)

    def __str__(self) -> str:
        return self.name or getattr(self.func, "__name__", "FilterFunc")


@dataclass
class MatchFilter:
    """Keeps the nodes matching every given selector, in input order."""
    kind: Optional[str] = None
    name: Optional[str] = None
    namespace: Optional[str] = None
    invert: bool = False

    def apply(self, nodes: List[ResourceNode]) -> List[ResourceNode]:
        return [n for n in nodes
                if matches(n, self.kind, self.name, self.namespace) != self.invert]


@dataclass
class AnnotationSetter:
    """Upserts one annotation on every node, or only on nodes of one kind."""
    key: str
    value: str
    kind: Optional[str] = None

    def __post_init__(self):
        if not self.key:
            raise ConfigurationError("annotation key must not be empty")

    def apply(self, nodes: List[ResourceNode]) -> List[ResourceNode]:
        for index, node in enumerate(nodes):
            if not matches(node, kind=self.kind):
                continue
            try:
                node.set_annotation(self.key, self.value)
            except FieldError as e:
                raise FilterError(f"cannot annotate {node!r}: {e}", index=index) from e
        return nodes


@dataclass
class FieldSetter:
    """Sets a field on every matching node, creating parent maps as needed."""
    path: Union[str, Sequence[str]]
    value: Any
    kind: Optional[str] = None
    name: Optional[str] = None

    def __post_init__(self):
        keys = self.path.split('.') if isinstance(self.path, str) else list(self.path)
        if not keys or any(not k for k in keys):
            raise ConfigurationError(f"invalid field path: {self.path!r}")
        self.path = tuple(keys)

    def apply(self, nodes: List[ResourceNode]) -> List[ResourceNode]:
        for index, node in enumerate(nodes):
            if not matches(node, kind=self.kind, name=self.name):
                continue
            try:
                node.set_field(self.path, self.value)
            except FieldError as e:
                raise FilterError(f"cannot set {'.'.join(self.path)} on {node!r}: {e}",
                                  index=index) from e
        return nodes
