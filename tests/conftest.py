from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from sfrewind.manifest.models import OrgConfig


@pytest.fixture
def source_org() -> OrgConfig:
    return OrgConfig(username="source@example.com", instance_url="https://source.my.salesforce.com")


@pytest.fixture
def target_org() -> OrgConfig:
    return OrgConfig(username="target@example.com", instance_url="https://target.my.salesforce.com")


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[..., Path]:
    """
    Factory fixture writing a CSV snapshot under tmp_path.

    Usage:
        path = write_csv("backup/Account.csv", ["Id", "Name"], [["001", "Acme"]])
    """

    def _write(relative: str, header: list[str], rows: list[list[str]] | None = None) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = [",".join(header)] + [",".join(row) for row in rows or []]
        path.write_text("\n".join(lines), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[..., Path]:
    """
    Factory fixture writing metadata.json into a backup directory.

    Returns the backup directory.
    """

    def _write(
        objects: list[dict[str, Any]],
        backup_dir: Path | None = None,
        **extra: Any,
    ) -> Path:
        directory = backup_dir or tmp_path
        directory.mkdir(parents=True, exist_ok=True)
        manifest = {"mode": "standard", "phaseNumber": None, "objects": objects}
        manifest.update(extra)
        (directory / "metadata.json").write_text(json.dumps(manifest), encoding="utf-8")
        return directory

    return _write
