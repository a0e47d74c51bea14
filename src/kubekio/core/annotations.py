#!/usr/bin/env python3
"""
KUBEKIO CONVENTIONS
-------------------
Reserved annotation keys and defaults shared by filters and writers.

Filters record layout decisions as annotations; writers read them back.
Neither side inspects the other's state, so these names are the whole
contract between the two.

Author: KubeKio Team
Date: 2026-10-19
"""

# Relative output file for a resource.
PATH_ANNOTATION = "path"

# POSIX permission bits for the output file, written as a decimal integer.
MODE_ANNOTATION = "mode"

RESERVED_ANNOTATIONS = (PATH_ANNOTATION, MODE_ANNOTATION)

DEFAULT_MODE = 0o600  # 384
DEFAULT_FILENAME_PATTERN = "%n_%k.yaml"

# Used by package writers for resources that carry no path annotation.
DEFAULT_OUTPUT_PATH = "resources.yaml"

# Per-package provenance manifest. Never treated as a resource.
KPTFILE_NAME = "Kptfile"

DOCUMENT_SEPARATOR = "---\n"
