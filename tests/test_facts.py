"""
Tests for fact builders — order, names, dependencies and checks.
"""

from pathlib import Path

import pytest

from devsetup.core.data import TemplateNotFoundError, load_template
from devsetup.core.facts import FactContext, build_facts
from devsetup.core.facts.layout import file_fact
from devsetup.core.models.config import CommandFact, FileSpec, ProvisionConfig, SystemPackage
from devsetup.core.models.fact import FactKind, InstallPolicy


def _facts(machine, target: Path, **config):
    ctx = FactContext(
        registry=machine.registry,
        target=target,
        config=ProvisionConfig(**config),
    )
    return build_facts(ctx)


class TestBuildFacts:
    def test_default_order(self, machine, tmp_path: Path):
        names = [f.name for f in _facts(machine, tmp_path)]
        assert names[:4] == ["node runtime", "npm", "ffmpeg", "package manifest"]
        assert names.index("dependency express") < names.index("dev dependency jest")
        assert names.index("dev dependency nodemon") < names.index("directory src/controllers")
        assert names.index("directory tests/integration") < names.index("file src/server.js")
        assert names[-2:] == ["jq", "manifest scripts"]

    def test_builtin_patcher_has_no_jq(self, machine, tmp_path: Path):
        facts = _facts(machine, tmp_path, manifest={"patcher": "builtin"})
        assert "jq" not in [f.name for f in facts]
        assert facts[-1].name == "manifest scripts"

    def test_jq_declared_once(self, machine, tmp_path: Path):
        facts = _facts(
            machine,
            tmp_path,
            system_packages=[SystemPackage(name="ffmpeg"), SystemPackage(name="jq")],
        )
        assert [f.name for f in facts].count("jq") == 1

    def test_kinds(self, machine, tmp_path: Path):
        by_name = {f.name: f for f in _facts(machine, tmp_path)}
        assert by_name["node runtime"].kind == FactKind.TOOL
        assert by_name["dependency axios"].kind == FactKind.PACKAGE
        assert by_name["directory public"].kind == FactKind.LAYOUT
        assert by_name["file public/index.html"].kind == FactKind.FILE
        assert by_name["manifest scripts"].kind == FactKind.MANIFEST

    def test_dependencies_wired(self, machine, tmp_path: Path):
        by_name = {f.name: f for f in _facts(machine, tmp_path)}
        assert by_name["dependency axios"].depends_on == ["node runtime", "package manifest"]
        assert by_name["package manifest"].depends_on == ["node runtime"]
        assert by_name["manifest scripts"].depends_on == ["package manifest", "jq"]

    def test_npm_refresh_policy(self, machine, tmp_path: Path):
        npm = {f.name: f for f in _facts(machine, tmp_path)}["npm"]
        assert npm.policy == InstallPolicy.ALWAYS_REFRESH
        assert not npm.required

    def test_npm_refresh_disabled(self, machine, tmp_path: Path):
        names = [f.name for f in _facts(machine, tmp_path, runtime={"update_npm": False})]
        assert "npm" not in names

    def test_ffmpeg_policy_configurable(self, machine, tmp_path: Path):
        facts = _facts(
            machine,
            tmp_path,
            system_packages=[SystemPackage(name="ffmpeg", policy=InstallPolicy.ALWAYS_REFRESH)],
        )
        ffmpeg = {f.name: f for f in facts}["ffmpeg"]
        assert ffmpeg.policy == InstallPolicy.ALWAYS_REFRESH

    def test_command_facts_appended(self, machine, tmp_path: Path):
        facts = _facts(
            machine,
            tmp_path,
            commands=[CommandFact(name="env file", check="test -f .env", apply="touch .env")],
        )
        assert facts[-1].name == "command env file"
        assert facts[-1].kind == FactKind.COMMAND

    def test_duplicate_names_rejected(self, machine, tmp_path: Path):
        with pytest.raises(ValueError, match="Duplicate"):
            _facts(machine, tmp_path, dependencies=["express", "express"])

    def test_unknown_template_rejected(self, machine, tmp_path: Path):
        with pytest.raises(TemplateNotFoundError):
            _facts(machine, tmp_path, files=[FileSpec(path="a.js", template="missing.js")])

    def test_missing_package_adapter(self, tmp_path: Path):
        from devsetup.adapters.registry import AdapterRegistry

        ctx = FactContext(registry=AdapterRegistry(), target=tmp_path, config=ProvisionConfig())
        with pytest.raises(KeyError):
            build_facts(ctx)


class TestChecks:
    def test_checks_do_not_mutate(self, machine, tmp_path: Path):
        for fact in _facts(machine, tmp_path):
            if fact.kind != FactKind.COMMAND:
                fact.check()
        assert list(tmp_path.iterdir()) == []
        assert machine.node.install_calls == []
        assert machine.npm.install_calls == []
        assert machine.apt.install_calls == []

    def test_package_check_uses_adapter(self, machine_with, tmp_path: Path):
        machine = machine_with(["axios"])
        axios = {f.name: f for f in _facts(machine, tmp_path)}["dependency axios"]
        assert axios.check()
        assert "axios" in machine.npm.probe_calls

    def test_file_check_compares_content(self, machine, tmp_path: Path):
        ctx = FactContext(registry=machine.registry, target=tmp_path, config=ProvisionConfig())
        fact = file_fact(ctx, FileSpec(path="src/server.js", template="server.js"))
        target = tmp_path / "src" / "server.js"
        target.parent.mkdir(parents=True)

        target.write_text("// edited by hand\n")
        assert not fact.check()
        target.write_text(load_template("server.js"))
        assert fact.check()

    def test_command_fact(self, machine, tmp_path: Path):
        ctx_facts = _facts(
            machine,
            tmp_path,
            commands=[CommandFact(name="env file", check="test -f .env", apply="touch .env")],
        )
        fact = ctx_facts[-1]
        assert not fact.check()
        assert fact.converge().ok
        assert fact.check()
