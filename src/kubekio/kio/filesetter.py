#!/usr/bin/env python3
"""
KUBEKIO FILE SETTER - Output Layout
-----------------------------------
Assigns every resource a relative output path and file mode, recorded as
the `path` and `mode` annotations, and puts the sequence in the order a
package writer will emit it.

Filename patterns understand three placeholders:

    %n  metadata.name
    %s  metadata.namespace (empty when absent)
    %k  kind, case preserved
    %%  a literal percent sign

A pattern without placeholders is legal; every resource then shares one
path and the input order is kept.

Author: KubeKio Team
Date: 2026-10-19
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Union

from kubekio.core.annotations import (
    DEFAULT_FILENAME_PATTERN,
    DEFAULT_MODE,
    MODE_ANNOTATION,
    PATH_ANNOTATION,
)
from kubekio.core.errors import ConfigurationError, FieldError, FilterError
from kubekio.core.models import ResourceNode

logger = logging.getLogger("kubekio.filesetter")

# Placeholder letter -> field accessor
PLACEHOLDERS = {
    'n': ResourceNode.get_name,
    's': ResourceNode.get_namespace,
    'k': ResourceNode.get_kind,
}

Token = Union[str, Callable[[ResourceNode], str]]


def compile_pattern(pattern: str) -> List[Token]:
    """
    Splits a filename pattern into literal text and field accessors.
    Raises ConfigurationError for unknown or dangling placeholders.
    """
    tokens: List[Token] = []
    literal = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char != '%':
            literal.append(char)
            i += 1
            continue
        if i + 1 >= len(pattern):
            raise ConfigurationError(f"filename pattern {pattern!r} ends with a bare '%'")
        code = pattern[i + 1]
        if code == '%':
            literal.append('%')
        elif code in PLACEHOLDERS:
            if literal:
                tokens.append(''.join(literal))
                literal = []
            tokens.append(PLACEHOLDERS[code])
        else:
            raise ConfigurationError(
                f"filename pattern {pattern!r} uses unknown placeholder '%{code}'")
        i += 2
    if literal:
        tokens.append(''.join(literal))
    return tokens


@dataclass
class FileSetter:
    """
    Path-assignment filter.

    An empty filename_pattern means DEFAULT_FILENAME_PATTERN ("%n_%k.yaml"),
    which leaves the namespace out. The output is a stable sort of the input
    by rendered path, compared as UTF-8 bytes.
    """
    filename_pattern: str = ""
    mode: int = DEFAULT_MODE
    _tokens: List[Token] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.filename_pattern:
            self.filename_pattern = DEFAULT_FILENAME_PATTERN
        if isinstance(self.mode, bool) or not isinstance(self.mode, int) \
                or not 0 <= self.mode <= 0o7777:
            raise ConfigurationError(f"file mode must be within 0..0o7777, got {self.mode!r}")
        self._tokens = compile_pattern(self.filename_pattern)

    def render(self, node: ResourceNode) -> str:
        return ''.join(t if isinstance(t, str) else t(node) for t in self._tokens)

    def apply(self, nodes: List[ResourceNode]) -> List[ResourceNode]:
        paths = []
        for index, node in enumerate(nodes):
            path = self.render(node)
            try:
                node.set_annotation(PATH_ANNOTATION, path)
                node.set_annotation(MODE_ANNOTATION, self.mode)
            except FieldError as e:
                raise FilterError(f"cannot annotate {node!r}: {e}", index=index) from e
            paths.append(path.encode('utf-8'))

        # sorted() is stable: equal paths keep their input order
        order = sorted(range(len(nodes)), key=lambda i: paths[i])
        logger.debug(f"Assigned paths to {len(nodes)} resource(s) using {self.filename_pattern!r}")
        return [nodes[i] for i in order]
