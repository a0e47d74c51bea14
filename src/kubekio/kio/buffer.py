#!/usr/bin/env python3
"""
KUBEKIO PACKAGE BUFFER
----------------------
In-memory package: a Reader and a Writer over one list of nodes.

Author: KubeKio Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from typing import Iterable, List

from kubekio.core.models import ResourceNode


@dataclass
class PackageBuffer:
    """
    Holds a sequence between pipelines. Reading returns a new list over the
    held nodes; writing replaces the held list.
    """
    nodes: List[ResourceNode] = field(default_factory=list)

    def read(self) -> List[ResourceNode]:
        return list(self.nodes)

    def write(self, nodes: Iterable[ResourceNode]) -> None:
        self.nodes = list(nodes)
