#!/usr/bin/env python3
"""
KUBEKIO READERS
---------------
Turn document streams and package directories into ordered sequences of
ResourceNodes.

Author: KubeKio Team
Date: 2026-10-19
"""

import logging
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, FrozenSet, List, Tuple

from kubekio.core.annotations import KPTFILE_NAME, MODE_ANNOTATION, PATH_ANNOTATION
from kubekio.core.errors import MalformedDocumentError, ReadError
from kubekio.core.models import ResourceNode, parse_documents

logger = logging.getLogger("kubekio.reader")


@dataclass
class ByteReader:
    """
    Reads every document from a single text or binary stream.

    The stream belongs to the caller; it is read once and never closed here.
    """
    stream: IO

    def read(self) -> List[ResourceNode]:
        try:
            raw = self.stream.read()
        except (OSError, ValueError) as e:
            raise ReadError(f"unable to read input stream: {e}") from e

        if isinstance(raw, bytes):
            try:
                raw = raw.decode('utf-8-sig')
            except UnicodeDecodeError as e:
                raise ReadError(f"input stream is not valid UTF-8: {e}") from e

        nodes = parse_documents(raw)
        logger.debug(f"Read {len(nodes)} resource(s) from stream")
        return nodes


@dataclass
class LocalPackageReader:
    """
    Reads every manifest file below a package directory.

    Files are visited in sorted relative-path order, and documents keep
    their order within a file. Each node is annotated with the file it came
    from and that file's permission bits, so a package writer can put it
    back where it was.

    A file holding no documents (empty, or only comments) yields no nodes,
    so a package writer has nothing to write back for it.
    """
    package_path: str
    match_files: Tuple[str, ...] = ("*.yaml", "*.yml")
    skip_files: FrozenSet[str] = field(default_factory=lambda: frozenset({KPTFILE_NAME}))
    set_annotations: bool = True

    def _discover(self, root: Path) -> List[Path]:
        found = set()
        for pattern in self.match_files:
            for candidate in root.rglob(pattern):
                rel_parts = candidate.relative_to(root).parts
                # Exclude symlinks to prevent loops, and git metadata
                if ".git" in rel_parts or candidate.is_symlink() or not candidate.is_file():
                    continue
                if candidate.name in self.skip_files:
                    continue
                found.add(candidate)
        return sorted(found, key=lambda p: p.relative_to(root).as_posix())

    def read(self) -> List[ResourceNode]:
        root = Path(self.package_path)
        if not root.is_dir():
            raise ReadError(f"package directory not found: {self.package_path}")

        nodes: List[ResourceNode] = []
        for file_path in self._discover(root):
            rel_path = file_path.relative_to(root).as_posix()
            try:
                text = file_path.read_text(encoding='utf-8-sig')
                mode = stat.S_IMODE(os.stat(file_path).st_mode)
            except (OSError, UnicodeDecodeError) as e:
                raise ReadError(f"unable to read {rel_path}: {e}") from e

            try:
                file_nodes = parse_documents(text)
            except MalformedDocumentError as e:
                raise MalformedDocumentError(f"{rel_path}: {e}", index=e.index) from e

            if self.set_annotations:
                for node in file_nodes:
                    node.set_annotation(PATH_ANNOTATION, rel_path)
                    node.set_annotation(MODE_ANNOTATION, mode)

            logger.debug(f"Read {len(file_nodes)} resource(s) from {rel_path}")
            nodes.extend(file_nodes)

        logger.info(f"Read {len(nodes)} resource(s) from package {self.package_path}")
        return nodes
