"""
Converge use case — provision a target directory.

This is the top-level orchestrator: it loads config, builds the adapter
registry and the fact list, runs the convergence, and persists the
outcome. The full vertical slice from user intent to audited state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from devsetup.adapters.languages.node import NodeAdapter
from devsetup.adapters.mock import fake_package_adapters
from devsetup.adapters.packages.apt import AptAdapter
from devsetup.adapters.packages.npm import NpmAdapter
from devsetup.adapters.registry import AdapterRegistry
from devsetup.adapters.shell.command import ShellCommandAdapter
from devsetup.adapters.shell.filesystem import FilesystemAdapter
from devsetup.adapters.shell.process import ProcessRunner
from devsetup.core.config.loader import ConfigError, load_config
from devsetup.core.engine.runner import ConvergenceReport, ConvergenceRunner, generate_run_id
from devsetup.core.facts import FactContext, build_facts
from devsetup.core.models.config import ProvisionConfig
from devsetup.core.models.fact import EnvironmentFact, FactOutcome
from devsetup.core.persistence.audit import AuditEntry, AuditLog
from devsetup.core.persistence.state_file import default_state_path, load_state, save_state

logger = logging.getLogger(__name__)


@dataclass
class ConvergeResult:
    """Result of a convergence (or dry-run) over a target directory."""

    report: ConvergenceReport | None = None
    config: ProvisionConfig | None = None
    target: Path | None = None
    facts: list[EnvironmentFact] = field(default_factory=list)
    lenient: bool = False
    state_saved: bool = False
    error: str | None = None

    @property
    def exit_code(self) -> int:
        if self.error:
            return 1
        if self.report is None:
            return 0
        return self.report.exit_code(lenient=self.lenient)

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["target"] = str(self.target)
        result["exit_code"] = self.exit_code
        result["state_saved"] = self.state_saved
        if self.report:
            result["report"] = self.report.to_dict()
        else:
            result["facts"] = [f.to_dict() for f in self.facts]
        return result


def build_registry(config: ProvisionConfig, mock_mode: bool = False) -> AdapterRegistry:
    """Register every adapter the facts need.

    In mock mode the package-managing adapters are in-memory fakes;
    filesystem and shell adapters stay real.
    """
    runner = ProcessRunner(
        use_sudo=config.use_sudo,
        default_timeout=config.timeouts.install,
    )
    registry = AdapterRegistry()
    registry.register(ShellCommandAdapter(runner))
    registry.register(FilesystemAdapter())

    if mock_mode:
        for adapter in fake_package_adapters():
            registry.register(adapter)
        return registry

    node = NodeAdapter(runner, runtime=config.runtime, probe_timeout=config.timeouts.probe)
    bin_dir = node.discover()
    if bin_dir:
        logger.info("Using nvm Node.js from %s", bin_dir)
    registry.register(node)
    registry.register(NpmAdapter(runner, probe_timeout=config.timeouts.probe))
    registry.register(AptAdapter(runner, probe_timeout=config.timeouts.probe))

    missing = registry.unavailable()
    if missing:
        # npm may appear once the runtime fact converges
        logger.info("Not available before the run: %s", ", ".join(missing))
    return registry


def prepare(
    target: Path | None = None,
    config_path: Path | None = None,
    mock_mode: bool = False,
    registry: AdapterRegistry | None = None,
    run_id: str | None = None,
    inspect_only: bool = False,
) -> ConvergeResult:
    """Load config and build facts without evaluating any of them.

    ``inspect_only`` builds against fake package adapters (nothing on the
    machine is probed) but keeps the configured patcher, so the list
    matches what a real run would process.
    """
    result = ConvergeResult()
    target = (target or Path.cwd()).resolve()
    result.target = target

    try:
        config = load_config(config_path, target=target)
    except ConfigError as e:
        result.error = str(e)
        return result

    if mock_mode and config.manifest.patcher == "jq":
        # No real jq behind the fake apt adapter
        config = config.model_copy(
            update={"manifest": config.manifest.model_copy(update={"patcher": "builtin"})}
        )
    result.config = config

    if registry is None:
        registry = build_registry(config, mock_mode=mock_mode or inspect_only)

    ctx = FactContext(
        registry=registry,
        target=target,
        config=config,
        run_id=run_id or generate_run_id(),
    )
    try:
        result.facts = build_facts(ctx)
    except (LookupError, TypeError, ValueError) as e:
        result.error = f"Cannot build facts: {e}"
    return result


def run_convergence(
    target: Path | None = None,
    config_path: Path | None = None,
    dry_run: bool = False,
    mock_mode: bool = False,
    save: bool = True,
    lenient: bool = False,
    registry: AdapterRegistry | None = None,
) -> ConvergeResult:
    """Provision ``target`` (default: cwd).

    Args:
        target: Directory to scaffold the project in.
        config_path: Optional explicit devsetup.yml.
        dry_run: Check every fact, converge nothing.
        mock_mode: Use fake package managers (no apt/npm/nvm calls).
        save: Persist state and audit entry (never in dry-run or mock).
        lenient: Exit 0 even when required facts failed.
        registry: Optional pre-built adapter registry.

    Returns:
        ConvergeResult with the convergence report.
    """
    run_id = generate_run_id()
    result = prepare(
        target=target,
        config_path=config_path,
        mock_mode=mock_mode,
        registry=registry,
        run_id=run_id,
    )
    result.lenient = lenient
    if result.error:
        return result

    assert result.target is not None
    if not dry_run:
        result.target.mkdir(parents=True, exist_ok=True)

    runner = ConvergenceRunner(dry_run=dry_run)
    report = runner.run(result.facts, run_id=run_id)
    result.report = report

    logger.info(
        "Run %s: %s (%d satisfied, %d converged, %d failed)",
        report.run_id,
        report.status,
        report.satisfied,
        report.converged,
        report.failed,
    )

    if save and not dry_run and not mock_mode:
        _persist(result)
    return result


def _persist(result: ConvergeResult) -> None:
    report = result.report
    target = result.target
    assert report is not None and target is not None

    state_path = default_state_path(target)
    state = load_state(state_path)
    state.target = str(target)
    state.last_run.run_id = report.run_id
    state.last_run.started_at = report.started_at
    state.last_run.ended_at = report.ended_at
    state.last_run.status = report.status
    state.last_run.facts_total = report.total
    state.last_run.facts_satisfied = report.satisfied
    state.last_run.facts_converged = report.converged
    state.last_run.facts_failed = report.failed
    state.last_run.exit_code = result.exit_code

    for fact_result in report.results:
        state.set_fact_state(
            fact_result.name,
            kind=fact_result.kind.value,
            outcome=fact_result.outcome.value,
            last_run_at=report.ended_at,
            error=fact_result.error,
        )

    try:
        save_state(state, state_path)
    except OSError:
        return
    result.state_saved = True

    AuditLog(target=target).append(
        AuditEntry(
            run_id=report.run_id,
            target=str(target),
            status=report.status,
            exit_code=result.exit_code,
            facts_total=report.total,
            facts_satisfied=report.satisfied,
            facts_converged=report.converged,
            facts_failed=report.failed,
            converged=[r.name for r in report.results if r.outcome == FactOutcome.CONVERGED],
            errors=[f"{r.name}: {r.error}" for r in report.results if r.failed and r.error],
        )
    )
