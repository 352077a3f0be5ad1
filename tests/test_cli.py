"""
Tests for CLI commands — converge, check, facts, status and config.
"""

import json
from pathlib import Path

from click.testing import CliRunner

from devsetup.core.use_cases.converge import run_convergence
from devsetup.main import cli


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "devsetup" in result.output
        assert "converge" in result.output

    def test_missing_explicit_config(self, tmp_path: Path):
        result = CliRunner().invoke(
            cli, ["--config", str(tmp_path / "nope.yml"), "converge", "--mock",
                  "--target", str(tmp_path)],
        )
        assert result.exit_code == 1
        assert "Config file not found" in result.output


class TestConvergeCommand:
    def test_mock_run(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["converge", "--mock", "--target", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert "Setup completed successfully" in result.output
        assert "node runtime" in result.output
        assert (tmp_path / "package.json").is_file()
        assert (tmp_path / "public" / "index.html").is_file()
        assert not (tmp_path / ".devsetup").exists()

    def test_mock_run_json(self, tmp_path: Path):
        result = CliRunner().invoke(
            cli, ["converge", "--mock", "--json", "--target", str(tmp_path)]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["exit_code"] == 0
        assert data["report"]["status"] == "ok"
        outcomes = {r["name"]: r["outcome"] for r in data["report"]["results"]}
        assert outcomes["ffmpeg"] == "converged"
        assert outcomes["manifest scripts"] == "converged"

    def test_mock_dry_run(self, tmp_path: Path):
        target = tmp_path / "app"
        result = CliRunner().invoke(
            cli, ["converge", "--mock", "--dry-run", "--target", str(target)]
        )
        assert result.exit_code == 0
        assert "pending" in result.output
        assert not target.exists()

    def test_second_mock_run_all_satisfied_files(self, tmp_path: Path):
        runner = CliRunner()
        runner.invoke(cli, ["converge", "--mock", "--target", str(tmp_path)])
        result = runner.invoke(
            cli, ["converge", "--mock", "--json", "--target", str(tmp_path)]
        )
        outcomes = {r["name"]: r["outcome"] for r in json.loads(result.output)["report"]["results"]}
        assert outcomes["file public/index.html"] == "satisfied"
        assert outcomes["manifest scripts"] == "satisfied"

    def test_invalid_config(self, tmp_path: Path):
        (tmp_path / "devsetup.yml").write_text("dependencies: [express\n")
        result = CliRunner().invoke(cli, ["converge", "--mock", "--target", str(tmp_path)])
        assert result.exit_code == 1
        assert "Invalid YAML" in result.output


class TestCheckCommand:
    def test_invalid_config(self, tmp_path: Path):
        (tmp_path / "devsetup.yml").write_text("- not a mapping\n")
        result = CliRunner().invoke(cli, ["check", "--target", str(tmp_path)])
        assert result.exit_code == 1
        assert "mapping" in result.output


class TestFactsCommand:
    def test_lists_facts(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["facts", "--target", str(tmp_path)])
        assert result.exit_code == 0
        assert "node runtime" in result.output
        assert "npm (tool-presence) [always-refresh, optional]" in result.output
        assert "dev dependency nodemon" in result.output
        assert not list(tmp_path.iterdir())

    def test_json(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["facts", "--json", "--target", str(tmp_path)])
        assert result.exit_code == 0
        facts = json.loads(result.output)["facts"]
        names = [f["name"] for f in facts]
        assert names[0] == "node runtime"
        assert names[-1] == "manifest scripts"

    def test_lists_configured_patcher(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["facts", "--json", "--target", str(tmp_path)])
        facts = {f["name"]: f for f in json.loads(result.output)["facts"]}
        names = list(facts)
        assert names.index("jq") < names.index("manifest scripts")
        assert "jq" in facts["manifest scripts"]["depends_on"]

    def test_custom_config(self, tmp_path: Path):
        config = tmp_path / "team.yml"
        config.write_text("dependencies: [fastify]\ndev_dependencies: []\n")
        result = CliRunner().invoke(
            cli, ["--config", str(config), "facts", "--json", "--target", str(tmp_path)]
        )
        names = [f["name"] for f in json.loads(result.output)["facts"]]
        assert "dependency fastify" in names
        assert "dependency express" not in names


class TestStatusCommand:
    def test_no_run(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["status", "--target", str(tmp_path)])
        assert result.exit_code == 0
        assert "No recorded run" in result.output

    def test_after_run(self, machine, target: Path):
        machine.apt.fail_on("ffmpeg", "exit status 100")
        run_convergence(target=target, registry=machine.registry)

        result = CliRunner().invoke(cli, ["status", "--target", str(target)])
        assert result.exit_code == 0
        assert "partial" in result.output
        assert "ffmpeg: exit status 100" in result.output

    def test_json(self, machine, target: Path):
        converge = run_convergence(target=target, registry=machine.registry)
        result = CliRunner().invoke(cli, ["status", "--json", "--target", str(target)])
        data = json.loads(result.output)
        assert data["has_run"] is True
        assert data["last_run"]["run_id"] == converge.report.run_id
        assert len(data["history"]) == 1


class TestConfigCommands:
    def test_check_defaults(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["config", "check", "--target", str(tmp_path)])
        assert result.exit_code == 0
        assert "built-in defaults" in result.output
        assert "express, dotenv, axios" in result.output

    def test_check_json(self, target: Path):
        result = CliRunner().invoke(cli, ["config", "check", "--json", "--target", str(target)])
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["source"].endswith("devsetup.yml")

    def test_check_invalid(self, tmp_path: Path):
        (tmp_path / "devsetup.yml").write_text("manifest:\n  patcher: sed\n")
        result = CliRunner().invoke(cli, ["config", "check", "--target", str(tmp_path)])
        assert result.exit_code == 1
        assert "Configuration errors" in result.output

    def test_show(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["config", "show", "--target", str(tmp_path)])
        assert result.exit_code == 0
        assert "ffmpeg" in result.output
        assert "patcher: jq" in result.output
