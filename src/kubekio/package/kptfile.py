#!/usr/bin/env python3
"""
KUBEKIO PACKAGE MANIFEST
------------------------
Reads and writes the Kptfile, the one reserved file per package that
records where its resources came from. It is handled apart from the
resource pipeline: readers skip it and tree comparisons ignore it.

Author: KubeKio Team
Date: 2026-10-19
"""

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path

from ruamel.yaml import YAMLError
from ruamel.yaml.comments import CommentedMap

from kubekio.core.annotations import KPTFILE_NAME
from kubekio.core.errors import KioError
from kubekio.core.models import new_yaml

logger = logging.getLogger("kubekio.kptfile")

KPTFILE_API_VERSION = "kpt.dev/v1alpha1"
KPTFILE_KIND = "Kptfile"

# Known fields per level; anything else is rejected on read
_KNOWN_FIELDS = {
    (): {"apiVersion", "kind", "metadata", "upstream"},
    ("metadata",): {"name", "namespace", "labels", "annotations"},
    ("upstream",): {"type", "git"},
    ("upstream", "git"): {"repo", "directory", "ref", "commit"},
}


class KptfileError(KioError):
    """The package manifest is missing, malformed or has unknown fields."""


@dataclass
class GitLock:
    repo: str = ""
    directory: str = ""
    ref: str = ""
    commit: str = ""


@dataclass
class Upstream:
    type: str = ""
    git: GitLock = field(default_factory=GitLock)


@dataclass
class Kptfile:
    name: str = ""
    upstream: Upstream = field(default_factory=Upstream)


def _string(value) -> str:
    return "" if value is None else str(value)


def _check_fields(value, where, path: Path) -> None:
    """Rejects non-mappings and unknown keys, recursing into known sections."""
    label = ".".join(where) or "document"
    if not isinstance(value, dict):
        raise KptfileError(f"{path}: {label} must be a mapping")
    unknown = sorted(str(k) for k in set(value) - _KNOWN_FIELDS[where])
    if unknown:
        raise KptfileError(f"{path} has unknown field(s) in {label}: {', '.join(unknown)}")
    for key, child in value.items():
        section = where + (key,)
        if section in _KNOWN_FIELDS and child is not None:
            _check_fields(child, section, path)


def read_kptfile(package_dir: str) -> Kptfile:
    path = Path(package_dir) / KPTFILE_NAME
    try:
        data = new_yaml().load(path.read_text(encoding='utf-8'))
    except OSError as e:
        raise KptfileError(f"unable to read {path}: {e}") from e
    except YAMLError as e:
        raise KptfileError(f"invalid YAML in {path}: {e}") from e

    _check_fields(data, (), path)
    metadata = data.get("metadata") or {}
    upstream = data.get("upstream") or {}
    git = upstream.get("git") or {}
    return Kptfile(
        name=_string(metadata.get("name")),
        upstream=Upstream(
            type=_string(upstream.get("type")),
            git=GitLock(
                repo=_string(git.get("repo")),
                directory=_string(git.get("directory")),
                ref=_string(git.get("ref")),
                commit=_string(git.get("commit")),
            ),
        ),
    )


def write_kptfile(package_dir: str, kptfile: Kptfile) -> None:
    doc = CommentedMap()
    doc["apiVersion"] = KPTFILE_API_VERSION
    doc["kind"] = KPTFILE_KIND
    doc["metadata"] = CommentedMap({"name": kptfile.name})

    if kptfile.upstream.type:
        git = kptfile.upstream.git
        git_map = CommentedMap()
        for key in ("commit", "repo", "directory", "ref"):
            value = getattr(git, key)
            if value:
                git_map[key] = value
        doc["upstream"] = CommentedMap({"type": kptfile.upstream.type, "git": git_map})

    stream = io.StringIO()
    new_yaml().dump(doc, stream)
    path = Path(package_dir) / KPTFILE_NAME
    try:
        path.write_text(stream.getvalue(), encoding='utf-8')
    except OSError as e:
        raise KptfileError(f"unable to write {path}: {e}") from e
    logger.debug(f"Wrote package manifest {path}")
