from __future__ import annotations

import json

from sfrewind.cli import main

ORG_ARGS = [
    "--source-username", "source@example.com",
    "--source-url", "https://source",
    "--target-username", "target@example.com",
    "--target-url", "https://target",
]


def test_plan_prints_json(write_manifest, capsys) -> None:
    backup_dir = write_manifest(
        [{"objectName": "Account", "operation": "Insert", "externalId": "Name", "recordCount": 0}]
    )

    assert main(["plan", str(backup_dir), *ORG_ARGS]) == 0

    out, err = capsys.readouterr()
    plan = json.loads(out)
    assert plan["sourceOrg"]["username"] == "target@example.com"
    assert plan["targetOrg"]["username"] == "source@example.com"
    assert plan["objects"] == [
        {
            "objectName": "Account",
            "originalOperation": "Insert",
            "rollbackOperation": "Delete",
            "externalId": "Name",
            "query": "SELECT Id FROM Account WHERE Name != null",
            "confidenceTier": "external_id",
        }
    ]
    assert "Account: Insert -> Delete, external_id (tier 4)" in err


def test_risky_tier_is_flagged(write_manifest, capsys) -> None:
    backup_dir = write_manifest(
        [{"objectName": "Lead", "operation": "Insert", "originalQuery": "SELECT Id FROM Lead LIMIT 3"}]
    )

    assert main(["plan", str(backup_dir), *ORG_ARGS]) == 0

    _, err = capsys.readouterr()
    assert "row_cap (tier 3)  !! verify before running" in err


def test_plan_missing_manifest_exits_with_error(tmp_path) -> None:
    assert main(["plan", str(tmp_path), *ORG_ARGS]) == 1


def test_export_writes_engine_file(write_manifest, tmp_path, capsys) -> None:
    backup_dir = write_manifest(
        [{"objectName": "Account", "operation": "Insert", "externalId": "Name"}],
        backup_dir=tmp_path / "backup",
    )
    out_dir = tmp_path / "rollback"

    assert main(["export", str(backup_dir), *ORG_ARGS, "--out", str(out_dir)]) == 0

    export = json.loads((out_dir / "export.json").read_text(encoding="utf-8"))
    assert export["objects"][0]["operation"] == "Delete"


def test_list_backups(write_manifest, tmp_path, capsys) -> None:
    write_manifest(
        [{"objectName": "Account", "operation": "Update", "recordCount": 4}],
        backup_dir=tmp_path / "backups" / "2024-12-01T09-00-00",
    )

    assert main(["list", str(tmp_path / "backups")]) == 0

    out, _ = capsys.readouterr()
    assert out.startswith("2024-12-01T09-00-00\t1 objects\t4 records\t")
