"""
Per-user workspace: $MERSENNE_MR_HOME or ~/.mersenne_mr, holding the TOML
profiles under profiles/. The packaged profiles are copied in on first use.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from importlib.resources import files as pkg_files
from pathlib import Path

PROFILES = "profiles"


def workspace_dir() -> Path:
    env = os.environ.get("MERSENNE_MR_HOME")
    if env:
        return Path(env).expanduser().resolve()
    return (Path.home() / ".mersenne_mr").resolve()


def profiles_dir() -> Path:
    return workspace_dir() / PROFILES


def packaged_profiles() -> Iterator[tuple[str, bytes]]:
    """(file name, contents) of every *.toml profile shipped with the package."""
    for entry in sorted(pkg_files("mersenne_mr").joinpath(PROFILES).iterdir(), key=lambda e: e.name):
        if entry.is_file() and entry.name.endswith(".toml") and not entry.name.startswith("."):
            yield entry.name, entry.read_bytes()


def seed_workspace(*, overwrite: bool = False) -> tuple[Path, dict[str, int]]:
    """
    Copy the packaged profiles into the workspace.

    overwrite=False copies only missing files, so user edits survive;
    overwrite=True restores the shipped versions.

    Returns: (workspace_path, {"profiles": files_copied})
    """
    target = profiles_dir()
    target.mkdir(parents=True, exist_ok=True)

    copied = 0
    for name, data in packaged_profiles():
        dest = target / name
        if dest.exists() and not overwrite:
            continue
        dest.write_bytes(data)
        copied += 1

    return workspace_dir(), {PROFILES: copied}


def ensure_workspace_seeded() -> tuple[Path, bool, dict[str, int]]:
    root, copied = seed_workspace(overwrite=False)
    return root, any(copied.values()), copied
