from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.project_builder import FakeCargo, ProjectBuilder


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable source/manifest builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture
def fake_cargo() -> FakeCargo:
    return FakeCargo()


@pytest.fixture(autouse=True)
def _isolate_cargo_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CARGO", raising=False)
    monkeypatch.delenv("CARGO_SINGLE_CARGO", raising=False)
