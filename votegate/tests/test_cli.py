from __future__ import annotations

import json
from pathlib import Path

from votegate.cli.main import EXIT_DENIED, EXIT_ERROR, EXIT_GRANTED, main

_CONFIG = str(Path(__file__).resolve().parents[2] / "configs" / "blog.yaml")


def test_cli_check_exit_codes(capsys):
    rc = main(["check", "--config", _CONFIG, "--identity", "root", "--label", "ROLE_ADMIN",
               "--attribute", "ROLE_USER"])
    assert rc == EXIT_GRANTED
    assert capsys.readouterr().out.strip() == "GRANTED"

    rc = main(["check", "--config", _CONFIG, "--identity", "alice", "--label", "ROLE_USER",
               "--attribute", "ROLE_MODERATOR"])
    assert rc == EXIT_DENIED
    assert capsys.readouterr().out.strip() == "DENIED"


def test_cli_check_strategy_override(capsys):
    # Label voter grants ROLE_USER, authenticated voter abstains: unanimous still grants.
    rc = main(["check", "--config", _CONFIG, "--identity", "alice", "--label", "ROLE_USER",
               "--attribute", "ROLE_USER", "--strategy", "unanimous"])
    assert rc == EXIT_GRANTED


def test_cli_explain_prints_report(capsys):
    rc = main(["explain", "--config", _CONFIG, "--label", "ROLE_USER,ROLE_MODERATOR",
               "--attribute", "IS_AUTHENTICATED"])
    assert rc == EXIT_DENIED

    report = json.loads(capsys.readouterr().out)
    assert report["granted"] is False
    assert report["actor_identity"] is None
    assert [v["vote"] for v in report["votes"]] == ["ABSTAIN", "DENY"]


def test_cli_expand(capsys):
    rc = main(["expand", "--config", _CONFIG, "--label", "ROLE_MODERATOR"])
    assert rc == 0
    assert json.loads(capsys.readouterr().out) == ["ROLE_MODERATOR", "ROLE_USER"]


def test_cli_reports_configuration_errors(tmp_path, capsys):
    bad = tmp_path / "cycle.yaml"
    bad.write_text("label_hierarchy:\n  ROLE_A: [ROLE_A]\n", encoding="utf-8")

    rc = main(["check", "--config", str(bad), "--attribute", "ROLE_A"])
    assert rc == EXIT_ERROR
    assert "Cyclic label hierarchy" in capsys.readouterr().err

    rc = main(["check", "--config", str(tmp_path / "missing.yaml"), "--attribute", "ROLE_A"])
    assert rc == EXIT_ERROR

    rc = main(["check", "--config", _CONFIG, "--attribute", "CAN_EDIT_POST", "--subject", "[1]"])
    assert rc == EXIT_ERROR
