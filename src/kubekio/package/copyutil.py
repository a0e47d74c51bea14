#!/usr/bin/env python3
"""
KUBEKIO COPY UTILITIES
----------------------
Directory helpers used to materialize, clean up and compare packages on
disk. Git metadata is never copied or compared.

Author: KubeKio Team
Date: 2026-10-19
"""

import filecmp
import logging
import shutil
from pathlib import Path
from typing import Iterable, List, Set

from kubekio.core.annotations import KPTFILE_NAME

logger = logging.getLogger("kubekio.copyutil")


def _is_git(rel: Path) -> bool:
    return ".git" in rel.parts


def list_files(root: str) -> List[str]:
    """Relative POSIX paths of every regular file below root, sorted."""
    base = Path(root)
    files = []
    for path in base.rglob("*"):
        rel = path.relative_to(base)
        if _is_git(rel) or path.is_symlink() or not path.is_file():
            continue
        files.append(rel.as_posix())
    return sorted(files)


def copy_dir(src: str, dst: str) -> None:
    """Copies the contents of src into dst, merging with what is there."""
    shutil.copytree(src, dst, dirs_exist_ok=True, symlinks=True,
                    ignore=shutil.ignore_patterns(".git"))
    logger.debug(f"Copied {src} to {dst}")


def remove_all(path: str) -> None:
    target = Path(path)
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    elif target.exists() or target.is_symlink():
        target.unlink()


def diff(source_dir: str, dest_dir: str) -> Set[str]:
    """
    Relative paths of files present on only one side, or present on both
    with different contents.
    """
    source = set(list_files(source_dir))
    dest = set(list_files(dest_dir))
    changed = source ^ dest
    for rel in source & dest:
        if not filecmp.cmp(Path(source_dir) / rel, Path(dest_dir) / rel, shallow=False):
            changed.add(rel)
    return changed


def diff_packages(source_dir: str, dest_dir: str,
                  exclude: Iterable[str] = (KPTFILE_NAME,)) -> Set[str]:
    """diff() without the package manifest, which is expected to differ."""
    return diff(source_dir, dest_dir) - set(exclude)
