#!/usr/bin/env python3
"""
KUBEKIO PIPELINE - The Orchestrator
-----------------------------------
Composes Readers, Filters and Writers into one sequential run:

    1. every input is read to completion, results concatenated in input order
    2. each filter consumes the full output of the one before it
    3. every output receives the identical final sequence, in output order

The first failure stops the run. It is re-raised as a PipelineError that
names the stage, with the original exception chained as its cause. Outputs
that finished before the failure keep what they wrote.

Author: KubeKio Team
Date: 2026-10-19
"""

import logging
from dataclasses import dataclass, field
from typing import List, Protocol

from kubekio.core.errors import FilterError, PipelineError
from kubekio.core.models import ResourceNode
from kubekio.kio.filters import Filter

logger = logging.getLogger("kubekio.pipeline")


class Reader(Protocol):
    def read(self) -> List[ResourceNode]:
        ...


class Writer(Protocol):
    def write(self, nodes: List[ResourceNode]) -> None:
        ...


def _stage_name(role: str, position: int, stage: object) -> str:
    return f"{role}[{position}] {type(stage).__name__}"


@dataclass
class Pipeline:
    inputs: List[Reader] = field(default_factory=list)
    filters: List[Filter] = field(default_factory=list)
    outputs: List[Writer] = field(default_factory=list)

    def execute(self) -> None:
        nodes: List[ResourceNode] = []

        # --- PHASE 1: READ ---
        for position, reader in enumerate(self.inputs):
            stage = _stage_name("input", position, reader)
            try:
                nodes.extend(reader.read())
            except Exception as e:
                self._fail(stage, e)

        logger.debug(f"Read {len(nodes)} resource(s) from {len(self.inputs)} input(s)")

        # --- PHASE 2: FILTER ---
        for position, stage_filter in enumerate(self.filters):
            stage = _stage_name("filter", position, stage_filter)
            try:
                result = stage_filter.apply(nodes)
                if result is None:
                    raise FilterError("filter returned no sequence")
                nodes = list(result)
            except Exception as e:
                self._fail(stage, e)
            logger.debug(f"{stage} produced {len(nodes)} resource(s)")

        # --- PHASE 3: WRITE ---
        for position, writer in enumerate(self.outputs):
            stage = _stage_name("output", position, writer)
            try:
                writer.write(list(nodes))
            except Exception as e:
                self._fail(stage, e)

        logger.info(f"Pipeline finished: {len(nodes)} resource(s) to {len(self.outputs)} output(s)")

    @staticmethod
    def _fail(stage: str, error: Exception):
        logger.error(f"Pipeline stage {stage} failed: {error}")
        raise PipelineError(stage, error) from error
