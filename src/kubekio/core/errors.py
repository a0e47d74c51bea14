#!/usr/bin/env python3
"""
KUBEKIO ERRORS
--------------
Exception taxonomy shared by every stage of the resource pipeline.

Each stage raises its own error type to the Pipeline, which re-raises the
first failure as a PipelineError naming the stage that produced it.

Author: KubeKio Team
Date: 2026-10-19
"""

from typing import Optional


class KioError(Exception):
    """Base class for every error raised by kubekio."""


class ParseError(KioError):
    """A document stream could not be turned into resource nodes."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index  # zero-based document index within the stream


class MalformedDocumentError(ParseError):
    """The YAML text is syntactically invalid or not a resource mapping."""


class ReadError(KioError):
    """The input stream or package directory could not be read."""


class ConfigurationError(KioError):
    """A filter or writer was constructed with invalid settings."""


class FieldError(KioError):
    """A field path runs through a value that is not a mapping."""


class FilterError(KioError):
    """A filter failed while transforming the sequence."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index  # position of the offending node in the input


class WriteError(KioError):
    """A destination could not be written."""

    def __init__(self, message: str, destination: Optional[str] = None):
        super().__init__(message)
        self.destination = destination


class PipelineError(KioError):
    """Wraps the first failure of a pipeline run with its stage context."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.index = getattr(cause, "index", None)
        message = f"{stage}: {cause}"
        if self.index is not None and not isinstance(cause, ParseError):
            message = f"{stage} (resource {self.index}): {cause}"
        super().__init__(message)
