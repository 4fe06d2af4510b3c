"""Tests for shadow project materialization."""

from __future__ import annotations

import errno
import os

import pytest

import cargo_single.linking as linking_module
from cargo_single.cargo import CargoError, CargoRunner
from cargo_single.project import MaterializeError, ProjectMaterializer
from tests._fixtures.project_builder import FakeCargo


def _materializer(fake: FakeCargo, **kwargs) -> ProjectMaterializer:  # type: ignore[no-untyped-def]
    return ProjectMaterializer(CargoRunner("cargo", runner=fake), **kwargs)


def test_materialize_scaffolds_and_hardlinks(project_builder, fake_cargo) -> None:
    source = project_builder.source("hello.rs", "fn main() {}\n")

    project = _materializer(fake_cargo).materialize(source)

    assert project.root == project_builder.root / "hello"
    assert project.created is True
    assert project.linked is True
    assert project.needs_refresh is True
    assert fake_cargo.new_calls == [
        ["cargo", "new", "--quiet", "--bin", str(project.root)]
    ]
    assert os.path.samefile(project.entry_point, source)
    assert project.manifest_path.exists()


def test_materialize_respects_no_quiet(project_builder, fake_cargo) -> None:
    source = project_builder.source("hello.rs", "fn main() {}\n")

    _materializer(fake_cargo, quiet=False).materialize(source)

    assert fake_cargo.new_calls[0][:3] == ["cargo", "new", "--bin"]


def test_materialize_reuses_existing_project(project_builder, fake_cargo) -> None:
    source = project_builder.source("hello.rs", "fn main() {}\n")
    materializer = _materializer(fake_cargo)

    materializer.materialize(source)
    second = materializer.materialize(source)

    assert second.created is False
    assert second.needs_refresh is False
    assert len(fake_cargo.new_calls) == 1


def test_edits_to_source_are_visible_through_link(project_builder, fake_cargo) -> None:
    source = project_builder.source("hello.rs", "fn main() {}\n")
    project = _materializer(fake_cargo).materialize(source)

    with source.open("a", encoding="utf-8") as handle:
        handle.write("// trailing\n")

    assert project.entry_point.read_text(encoding="utf-8").endswith("// trailing\n")


def test_materialize_rejects_non_directory_shadow_path(project_builder, fake_cargo) -> None:
    source = project_builder.source("hello.rs", "fn main() {}\n")
    (project_builder.root / "hello").write_text("not a dir", encoding="utf-8")

    with pytest.raises(MaterializeError, match="not a directory"):
        _materializer(fake_cargo).materialize(source)

    assert fake_cargo.calls == []


def test_materialize_surfaces_failed_scaffold(project_builder) -> None:
    source = project_builder.source("hello.rs", "fn main() {}\n")
    fake = FakeCargo(new_returncode=101)

    with pytest.raises(CargoError) as excinfo:
        _materializer(fake).materialize(source)

    assert excinfo.value.returncode == 101


def test_copy_mode_tracks_and_refreshes_stale_entry_point(project_builder, fake_cargo) -> None:
    source = project_builder.source("hello.rs", "fn main() {}\n")
    materializer = _materializer(fake_cargo, link_mode="copy")

    project = materializer.materialize(source)
    assert project.linked is False
    assert project.stamp_path.exists()
    assert not os.path.samefile(project.entry_point, source)

    unchanged = materializer.materialize(source)
    assert unchanged.resynced is False
    assert unchanged.needs_refresh is False

    source.write_text('// foo = "1.0"\nfn main() {}\n', encoding="utf-8")
    resynced = materializer.materialize(source)

    assert resynced.resynced is True
    assert resynced.needs_refresh is True
    assert resynced.entry_point.read_text(encoding="utf-8") == source.read_text(encoding="utf-8")


def test_auto_mode_falls_back_to_copy_across_devices(project_builder, fake_cargo, monkeypatch) -> None:
    source = project_builder.source("hello.rs", "fn main() {}\n")

    def cross_device_link(src, dst):  # type: ignore[no-untyped-def]
        raise OSError(errno.EXDEV, "Invalid cross-device link")

    monkeypatch.setattr(linking_module.os, "link", cross_device_link)

    project = _materializer(fake_cargo, link_mode="auto").materialize(source)

    assert project.linked is False
    assert project.entry_point.read_text(encoding="utf-8") == "fn main() {}\n"
    assert project.stamp_path.exists()


def test_hardlink_mode_fails_across_devices(project_builder, fake_cargo, monkeypatch) -> None:
    source = project_builder.source("hello.rs", "fn main() {}\n")

    def cross_device_link(src, dst):  # type: ignore[no-untyped-def]
        raise OSError(errno.EXDEV, "Invalid cross-device link")

    monkeypatch.setattr(linking_module.os, "link", cross_device_link)

    with pytest.raises(MaterializeError, match="hardlinking"):
        _materializer(fake_cargo).materialize(source)
