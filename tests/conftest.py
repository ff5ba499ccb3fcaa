# tests/conftest.py
from __future__ import annotations

import pytest

from mersenne_mr import runtime


@pytest.fixture(autouse=True)
def isolated_workspace(tmp_path, monkeypatch):
    """Every test gets its own workspace and a fresh runtime."""
    home = tmp_path / "mersenne_home"
    monkeypatch.setenv("MERSENNE_MR_HOME", str(home))
    runtime.reset()
    yield home
    runtime.reset()
