import io

import pytest

from kubekio.kio.pipeline import Pipeline
from kubekio.kio.reader import ByteReader
from kubekio.kio.writer import ByteWriter

# Two Deployments and two Services; only the foo1 Deployment and the
# foo2 Service carry a namespace.
FOUR_RESOURCES = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: foo1
  namespace: bar
---
apiVersion: apps/v1
kind: Deployment
metadata:
  name: foo2
---
apiVersion: v1
kind: Service
metadata:
  name: foo2
  namespace: bar
---
apiVersion: v1
kind: Service
metadata:
  name: foo1
"""


@pytest.fixture
def four_resources() -> str:
    return FOUR_RESOURCES


@pytest.fixture
def run_filters():
    """Runs text through a ByteReader -> filters -> ByteWriter pipeline."""
    def _run(text, filters, **writer_options):
        out = io.StringIO()
        Pipeline(
            inputs=[ByteReader(io.StringIO(text))],
            filters=list(filters),
            outputs=[ByteWriter(out, **writer_options)],
        ).execute()
        return out.getvalue()
    return _run
