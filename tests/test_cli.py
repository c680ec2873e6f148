"""
Tests for the metatypes CLI commands.

The run_* functions are exercised directly against a bootstrapped registry;
a few click invocations cover option parsing and exit codes.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from metatypes import cli as cli_module
from metatypes.cli import cli
from metatypes.commands.types_cmd import (
    run_check_placement,
    run_check_value,
    run_health,
    run_providers,
    run_type_info,
    run_types,
)
from metatypes.registry import MetaDataRegistry


def test_types_json(bootstrapped: MetaDataRegistry, capsys) -> None:
    result = run_types(bootstrapped, family="key", json_output=True)
    assert result == 0

    data = json.loads(capsys.readouterr().out)
    assert [t["type_id"] for t in data] == ["key.base", "key.foreign", "key.primary", "key.secondary"]
    assert data[1]["parent"] == "key.base"
    assert data[1]["resolution"] == "resolved"


def test_types_table(bootstrapped: MetaDataRegistry, capsys) -> None:
    assert run_types(bootstrapped) == 0
    output = capsys.readouterr().out
    assert "Type Registry" in output
    assert "field.string" in output


def test_types_unknown_family(bootstrapped: MetaDataRegistry, capsys) -> None:
    assert run_types(bootstrapped, family="widget") == 1
    assert "widget" in capsys.readouterr().err


def test_type_info_json(bootstrapped: MetaDataRegistry, capsys) -> None:
    assert run_type_info(bootstrapped, "field.string", json_output=True) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["ancestors"] == ["field.base", "metadata.base"]
    attributes = {a["name"]: a for a in data["attributes"]}
    assert attributes["maxLength"]["value_type"] == "int"
    assert any(c["rule"].startswith("validator") and c["inherited"] for c in data["accepts_children"])
    assert attributes["maxLength"]["allowed_values"] is None


def test_type_info_json_lists_allowed_values(registry: MetaDataRegistry, capsys) -> None:
    registry.register_type(
        "field.base",
        lambda d: d.optional_attribute("visibility", allowed_values=["public", "private"]).optional_attribute(
            "maxLength", "int"
        ),
    )
    assert run_type_info(registry, "field.base", json_output=True) == 0

    attributes = {a["name"]: a for a in json.loads(capsys.readouterr().out)["attributes"]}
    assert attributes["visibility"]["allowed_values"] == ["private", "public"]
    assert attributes["maxLength"]["allowed_values"] is None

    assert run_type_info(registry, "field.base") == 0
    output = capsys.readouterr().out
    assert "private, public" in output
    assert "maxLength" in output


def test_type_info_not_found(bootstrapped: MetaDataRegistry, capsys) -> None:
    assert run_type_info(bootstrapped, "field.uuid") == 1
    assert "field.uuid" in capsys.readouterr().err


def test_providers_json(bootstrapped: MetaDataRegistry, capsys) -> None:
    assert run_providers(bootstrapped, json_output=True) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["order"][0] == "core-types"
    assert data["loaded"] == data["order"]
    assert data["failed"] == {}
    assert data["unresolved"] == []


def test_check_placement_allowed(bootstrapped: MetaDataRegistry, capsys) -> None:
    assert run_check_placement(bootstrapped, "object.pojo", "field.string", "email", json_output=True) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["allowed"]
    assert data["rule"] is not None
    assert data["constraint_id"] is None


def test_check_placement_denied_by_constraint(bootstrapped: MetaDataRegistry, capsys) -> None:
    assert run_check_placement(bootstrapped, "object.pojo", "field.string", "1stName") == 1
    output = capsys.readouterr().out
    assert "Denied" in output
    assert "field.name-identifier" in output


def test_check_placement_bad_type_name(bootstrapped: MetaDataRegistry, capsys) -> None:
    assert run_check_placement(bootstrapped, "pojo", "field.string", "email") == 1
    assert capsys.readouterr().err


def test_check_value(bootstrapped: MetaDataRegistry, capsys) -> None:
    assert run_check_value(bootstrapped, "field.string", "maxLength", "-5", json_output=True) == 1

    data = json.loads(capsys.readouterr().out)
    assert not data["valid"]
    assert [v["constraint_id"] for v in data["violations"]] == ["field.max-length-positive"]

    assert run_check_value(bootstrapped, "field.string", "maxLength", "64") == 0
    assert "Valid" in capsys.readouterr().out


def test_health(bootstrapped: MetaDataRegistry, capsys) -> None:
    assert run_health(bootstrapped) == 0
    assert "REGISTRY HEALTH REPORT" in capsys.readouterr().out

    assert run_health(bootstrapped, json_output=True) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["sound"]
    assert data["metadata"]["total_types"] == len(bootstrapped)


def test_health_reports_unresolved(registry: MetaDataRegistry, capsys) -> None:
    registry.register_type("widget.button", lambda d: d.inherits_from("widget.base"))
    assert run_health(registry) == 1
    assert "POOR" in capsys.readouterr().out


# -----------------------------------------------------------------------------
# click entrypoint
# -----------------------------------------------------------------------------


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    # Leave pytest's log capture handlers on the root logger alone
    monkeypatch.setattr(cli_module, "_configure_logging", lambda level: None)
    return CliRunner()


def test_cli_types_json(runner: CliRunner) -> None:
    with runner.isolated_filesystem():
        result = runner.invoke(cli, ["types", "--family", "view", "--json"])
    assert result.exit_code == 0, result.output
    assert [t["type_id"] for t in json.loads(result.output)] == ["view.base"]


def test_cli_check_placement_exit_codes(runner: CliRunner) -> None:
    with runner.isolated_filesystem():
        allowed = runner.invoke(cli, ["check-placement", "object.pojo", "field.long", "age"])
        denied = runner.invoke(cli, ["check-placement", "field.string", "object.pojo", "nested"])
    assert allowed.exit_code == 0
    assert "Allowed" in allowed.output
    assert denied.exit_code == 1
    assert "Denied" in denied.output


def test_cli_check_value_negative(runner: CliRunner) -> None:
    with runner.isolated_filesystem():
        result = runner.invoke(cli, ["check-value", "--json", "field.string", "maxLength", "--", "-1"])
    assert result.exit_code == 1
    assert json.loads(result.output)["violations"][0]["constraint_id"] == "field.max-length-positive"


def test_cli_uses_config_file(runner: CliRunner) -> None:
    with runner.isolated_filesystem():
        Path("metatypes.toml").write_text('[bootstrap]\ndisabled_providers = ["view-types"]\n', encoding="utf-8")
        result = runner.invoke(cli, ["providers", "--json"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["skipped"] == ["view-types"]


def test_cli_bad_config(runner: CliRunner) -> None:
    with runner.isolated_filesystem():
        Path("bad.toml").write_text('[logging]\nlevel = "LOUD"\n', encoding="utf-8")
        result = runner.invoke(cli, ["--config", "bad.toml", "types"])
    assert result.exit_code == 1
    assert "logging.level" in result.output


def test_cli_missing_config(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["--config", "nowhere.toml", "types"])
    assert result.exit_code == 2
