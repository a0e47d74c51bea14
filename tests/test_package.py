#!/usr/bin/env python3
"""
KUBEKIO PACKAGE ROUND-TRIP SUITE
--------------------------------
Reads a package from disk, runs it through the pipeline and compares the
written tree with the original, the way golden-fixture checks do.
"""

import os
import stat

import pytest

from kubekio.kio.filesetter import FileSetter
from kubekio.kio.filters import AnnotationSetter
from kubekio.kio.pipeline import Pipeline
from kubekio.kio.reader import LocalPackageReader
from kubekio.kio.writer import LocalPackageWriter
from kubekio.package import copyutil
from kubekio.package.kptfile import GitLock, Kptfile, KptfileError, Upstream, read_kptfile, write_kptfile

DEPLOYMENT = """\
# Frontend workload
apiVersion: apps/v1
kind: Deployment
metadata:
  name: web  # keep in sync with the service
  namespace: prod
spec:
  replicas: 3
  template:
    spec:
      containers:
        - name: web
          image: nginx:1.25
"""

SERVICES = """\
apiVersion: v1
kind: Service
metadata:
  name: web
spec:
  ports:
    - port: 80
---
apiVersion: v1
kind: Service
metadata:
  name: web-internal
  annotations:
    owner: platform
"""


@pytest.fixture
def package(tmp_path):
    root = tmp_path / "pkg"
    (root / "services").mkdir(parents=True)
    (root / "deployment.yaml").write_text(DEPLOYMENT)
    (root / "services" / "all.yaml").write_text(SERVICES)
    os.chmod(root / "deployment.yaml", 0o644)
    write_kptfile(str(root), Kptfile(name="pkg"))
    return root


def test_read_write_round_trip_is_lossless(tmp_path, package):
    out = tmp_path / "out"
    Pipeline(inputs=[LocalPackageReader(str(package))],
             outputs=[LocalPackageWriter(str(out))]).execute()

    assert copyutil.diff_packages(str(package), str(out)) == set()
    assert copyutil.diff(str(package), str(out)) == {"Kptfile"}
    assert stat.S_IMODE(os.stat(out / "deployment.yaml").st_mode) == 0o644


def test_in_place_update_only_touches_changed_field(tmp_path, package):
    golden = tmp_path / "golden"
    copyutil.copy_dir(str(package), str(golden))
    (golden / "services" / "all.yaml").write_text(
        SERVICES
        .replace("  name: web\n", "  name: web\n  annotations:\n    tier: backend\n")
        .replace("    owner: platform\n", "    owner: platform\n    tier: backend\n"))

    Pipeline(inputs=[LocalPackageReader(str(package))],
             filters=[AnnotationSetter("tier", "backend", kind="Service")],
             outputs=[LocalPackageWriter(str(package))]).execute()

    assert copyutil.diff_packages(str(golden), str(package)) == set()


def test_split_package_by_resource(tmp_path, package):
    out = tmp_path / "split"
    Pipeline(inputs=[LocalPackageReader(str(package))],
             filters=[FileSetter(filename_pattern="%k/%n.yaml")],
             outputs=[LocalPackageWriter(str(out))]).execute()

    assert copyutil.list_files(str(out)) == [
        "Deployment/web.yaml", "Service/web-internal.yaml", "Service/web.yaml"]
    assert (out / "Deployment" / "web.yaml").read_text() == DEPLOYMENT


def test_diff_reports_added_removed_and_changed(tmp_path):
    a, b = tmp_path / "a", tmp_path / "b"
    a.mkdir()
    b.mkdir()
    (a / "same.yaml").write_text("x: 1\n")
    (b / "same.yaml").write_text("x: 1\n")
    (a / "changed.yaml").write_text("x: 1\n")
    (b / "changed.yaml").write_text("x: 2\n")
    (a / "only_a.yaml").write_text("")
    (b / "nested").mkdir()
    (b / "nested" / "only_b.yaml").write_text("")
    (a / "Kptfile").write_text("a\n")
    (b / "Kptfile").write_text("b\n")

    assert copyutil.diff(str(a), str(b)) == {
        "changed.yaml", "only_a.yaml", "nested/only_b.yaml", "Kptfile"}
    assert "Kptfile" not in copyutil.diff_packages(str(a), str(b))


def test_diff_ignores_only_the_root_manifest(tmp_path):
    a, b = tmp_path / "a", tmp_path / "b"
    (a / "sub").mkdir(parents=True)
    (b / "sub").mkdir(parents=True)
    (a / "sub" / "Kptfile").write_text("a\n")
    (b / "sub" / "Kptfile").write_text("b\n")
    assert copyutil.diff_packages(str(a), str(b)) == {"sub/Kptfile"}


def test_copy_skips_git_and_remove_all(tmp_path):
    src, dst = tmp_path / "src", tmp_path / "dst"
    (src / ".git").mkdir(parents=True)
    (src / ".git" / "HEAD").write_text("ref\n")
    (src / "a.yaml").write_text("kind: A\n")
    copyutil.copy_dir(str(src), str(dst))
    assert copyutil.list_files(str(dst)) == ["a.yaml"]
    assert not (dst / ".git").exists()

    copyutil.remove_all(str(dst))
    assert not dst.exists()
    copyutil.remove_all(str(dst))


def test_kptfile_round_trip(tmp_path):
    kf = Kptfile(name="cockroachdb", upstream=Upstream(
        type="git",
        git=GitLock(repo="https://example.com/pkgs.git", directory="/cockroachdb",
                    ref="v1.0", commit="0123abcd")))
    write_kptfile(str(tmp_path), kf)
    assert read_kptfile(str(tmp_path)) == kf
    text = (tmp_path / "Kptfile").read_text()
    assert text.startswith("apiVersion: kpt.dev/v1alpha1\nkind: Kptfile\nmetadata:\n  name: cockroachdb\n")


def test_kptfile_without_upstream(tmp_path):
    write_kptfile(str(tmp_path), Kptfile(name="local"))
    assert read_kptfile(str(tmp_path)) == Kptfile(name="local")


def test_kptfile_rejects_unknown_fields(tmp_path):
    (tmp_path / "Kptfile").write_text("kind: Kptfile\nmetadata:\n  name: x\nsurprise: 1\n")
    with pytest.raises(KptfileError, match="surprise"):
        read_kptfile(str(tmp_path))


def test_kptfile_missing(tmp_path):
    with pytest.raises(KptfileError):
        read_kptfile(str(tmp_path))


@pytest.mark.parametrize("source", [
    "apiVersion: v1\nkind: Namespace\n",
    "apiVersion: v1\nkind: Namespace\nmetadata:\n",
    "kind: A\nmetadata:\n  name: a\n  annotations: {}\n",
    "kind: A\nmetadata:\n  name: a\n  annotations:\n",
    "kind: A\nmetadata: {}\nspec:\n  x: 1\n",
])
def test_round_trip_leaves_sparse_metadata_alone(tmp_path, source):
    """
    FIDELITY TEST: the reader's path/mode annotations must come back out
    without adding or removing the maps that held them.
    """
    src, out = tmp_path / "src", tmp_path / "out"
    src.mkdir()
    (src / "a.yaml").write_text(source)
    os.chmod(src / "a.yaml", 0o644)

    Pipeline(inputs=[LocalPackageReader(str(src))],
             outputs=[LocalPackageWriter(str(out))]).execute()

    assert (out / "a.yaml").read_text() == source
    assert copyutil.diff(str(src), str(out)) == set()


def test_comment_only_file_is_not_written_back(tmp_path):
    src, out = tmp_path / "src", tmp_path / "out"
    src.mkdir()
    (src / "notes.yaml").write_text("# nothing but notes\n")
    (src / "a.yaml").write_text("kind: A\n")

    Pipeline(inputs=[LocalPackageReader(str(src))],
             outputs=[LocalPackageWriter(str(out))]).execute()

    assert copyutil.diff(str(src), str(out)) == {"notes.yaml"}


@pytest.mark.parametrize("text, section", [
    ("kind: Kptfile\nmetadata:\n  name: x\n  nickname: y\n", "metadata"),
    ("kind: Kptfile\nupstream:\n  type: git\n  mirror: z\n", "upstream"),
    ("kind: Kptfile\nupstream:\n  type: git\n  git:\n    repo: r\n    branch: main\n", "upstream.git"),
    ("kind: Kptfile\nupstream:\n  git: [r]\n", "upstream.git"),
])
def test_kptfile_rejects_unknown_nested_fields(tmp_path, text, section):
    (tmp_path / "Kptfile").write_text(text)
    with pytest.raises(KptfileError, match=section):
        read_kptfile(str(tmp_path))
