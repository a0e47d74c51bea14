#!/usr/bin/env python3
"""
KUBEKIO WRITERS
---------------
Re-serialize the final resource sequence, either into one stream or split
across the files of a package directory.

Writers only read the public fields and annotations of a node. They never
mutate what they are given: when reserved annotations must be dropped
from the output, a copy of the node is serialized instead.

Author: KubeKio Team
Date: 2026-10-19
"""

import io
import logging
import os
import posixpath
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Dict, List, Sequence

from kubekio.core.annotations import (
    DEFAULT_MODE,
    DEFAULT_OUTPUT_PATH,
    MODE_ANNOTATION,
    PATH_ANNOTATION,
    RESERVED_ANNOTATIONS,
)
from kubekio.core.errors import ConfigurationError, WriteError
from kubekio.core.models import ResourceNode, serialize_documents

logger = logging.getLogger("kubekio.writer")


def _without_reserved(nodes: Sequence[ResourceNode]) -> List[ResourceNode]:
    stripped = []
    for node in nodes:
        annotations = node.get_annotations()
        if not any(key in annotations for key in RESERVED_ANNOTATIONS):
            stripped.append(node)
            continue
        clean = node.copy()
        for key in RESERVED_ANNOTATIONS:
            clean.clear_annotation(key)
        stripped.append(clean)
    return stripped


def _is_binary(stream: IO) -> bool:
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        return True
    return 'b' in str(getattr(stream, 'mode', ''))


@dataclass
class ByteWriter:
    """
    Writes every node to one stream, separated by '---' lines.

    The stream belongs to the caller and is left open.
    """
    stream: IO
    keep_reserved_annotations: bool = True

    def write(self, nodes: Sequence[ResourceNode]) -> None:
        if not self.keep_reserved_annotations:
            nodes = _without_reserved(nodes)
        content = serialize_documents(nodes)
        try:
            if _is_binary(self.stream):
                self.stream.write(content.encode('utf-8'))
            else:
                self.stream.write(content)
        except (OSError, ValueError, TypeError) as e:
            raise WriteError(f"unable to write output stream: {e}") from e
        logger.debug(f"Wrote {len(nodes)} resource(s) to stream")


class CollisionPolicy(str, Enum):
    """What a package writer does when several nodes share one path."""
    MERGE = "merge"          # one multi-document file, in sequence order
    ERROR = "error"          # refuse to write anything
    LAST_WINS = "last-wins"  # only the last node for the path is written


@dataclass
class LocalPackageWriter:
    """
    Splits the sequence into files below package_path.

    Nodes are grouped by their path annotation; nodes without one go to
    default_path. Within a file, documents keep their sequence order. The
    file mode comes from the first node's mode annotation.

    MERGE is the default collision policy because reading a multi-document
    file yields several nodes with the same path, and writing them back must
    reproduce that file.
    """
    package_path: str
    collision: CollisionPolicy = CollisionPolicy.MERGE
    default_path: str = DEFAULT_OUTPUT_PATH
    keep_reserved_annotations: bool = False

    def __post_init__(self):
        try:
            self.collision = CollisionPolicy(self.collision)
        except ValueError as e:
            raise ConfigurationError(f"unknown collision policy: {self.collision!r}") from e
        if not self.default_path:
            raise ConfigurationError("default_path must not be empty")

    def _destination(self, node: ResourceNode) -> str:
        rel_path = node.get_annotations().get(PATH_ANNOTATION) or self.default_path
        normalized = posixpath.normpath(rel_path)
        if (posixpath.isabs(rel_path) or os.path.isabs(rel_path)
                or normalized == ".." or normalized.startswith("../")
                or normalized == "."):
            raise WriteError(f"path annotation '{rel_path}' is outside the package",
                             destination=rel_path)
        return normalized

    def _mode(self, node: ResourceNode, rel_path: str) -> int:
        value = node.get_annotations().get(MODE_ANNOTATION)
        if value is None or value == "":
            return DEFAULT_MODE
        try:
            mode = int(value)
        except ValueError as e:
            raise WriteError(f"invalid mode annotation '{value}' for {rel_path}",
                             destination=rel_path) from e
        if not 0 <= mode <= 0o7777:
            raise WriteError(f"mode annotation {mode} out of range for {rel_path}",
                             destination=rel_path)
        return mode

    def _group(self, nodes: Sequence[ResourceNode]) -> Dict[str, List[ResourceNode]]:
        groups: Dict[str, List[ResourceNode]] = {}
        for node in nodes:
            groups.setdefault(self._destination(node), []).append(node)

        for rel_path, members in groups.items():
            if len(members) < 2:
                continue
            if self.collision == CollisionPolicy.ERROR:
                raise WriteError(f"{len(members)} resources map to {rel_path}",
                                 destination=rel_path)
            if self.collision == CollisionPolicy.LAST_WINS:
                logger.warning(f"{len(members) - 1} resource(s) for {rel_path} overwritten")
                groups[rel_path] = members[-1:]
        return groups

    def write(self, nodes: Sequence[ResourceNode]) -> None:
        # Validate every destination before touching the filesystem
        groups = self._group(nodes)
        plan = [(rel_path, self._mode(members[0], rel_path), members)
                for rel_path, members in groups.items()]

        root = Path(self.package_path)
        for rel_path, mode, members in plan:
            if not self.keep_reserved_annotations:
                members = _without_reserved(members)
            target = root / rel_path
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise WriteError(f"unable to create {target.parent}: {e}",
                                 destination=rel_path) from e
            self._atomic_write(target, serialize_documents(members), mode)
            logger.debug(f"Wrote {len(members)} resource(s) to {rel_path}")

        logger.info(f"Wrote {len(plan)} file(s) to package {self.package_path}")

    def _atomic_write(self, target_path: Path, content: str, mode: int):
        temp_file = target_path.with_name(target_path.name + '.kubekio.tmp')
        try:
            temp_file.write_text(content, encoding='utf-8')
            os.chmod(temp_file, mode)
            os.replace(temp_file, target_path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise WriteError(f"atomic write of {target_path} failed: {e}",
                             destination=str(target_path)) from e
