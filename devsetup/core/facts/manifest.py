"""
Manifest facts — package.json exists and carries the script entries.

The scripts merge is structural: unrelated keys and scripts survive,
configured entries are added or overwritten, and the manifest is
replaced atomically (temp file + rename). The merge itself runs either
through a ``jq`` filter subprocess or in-process.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from devsetup.core.facts.base import NODE_RUNTIME, PACKAGE_MANIFEST, FactContext
from devsetup.core.models.action import Receipt
from devsetup.core.models.fact import EnvironmentFact, FactKind

logger = logging.getLogger(__name__)

MANIFEST_SCRIPTS = "manifest scripts"
JQ_FILTER = ".scripts += $entries"


class ManifestError(ValueError):
    """Raised when the manifest cannot be parsed or merged."""


def read_manifest(path: Path) -> dict[str, Any]:
    """Parse a manifest file.

    Raises:
        ManifestError: If the file is not a JSON object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    return data


def merge_scripts(manifest: dict[str, Any], entries: dict[str, str]) -> dict[str, Any]:
    """Return a copy of ``manifest`` with ``entries`` merged into ``scripts``.

    Raises:
        ManifestError: If ``scripts`` exists but is not a mapping.
    """
    merged = dict(manifest)
    scripts = merged.get("scripts")
    if scripts is None:
        scripts = {}
    elif not isinstance(scripts, dict):
        raise ManifestError(f"'scripts' must be an object, got {type(scripts).__name__}")
    merged["scripts"] = {**scripts, **entries}
    return merged


def render_manifest(manifest: dict[str, Any]) -> str:
    return json.dumps(manifest, indent=2, ensure_ascii=False) + "\n"


def scripts_present(path: Path, entries: dict[str, str]) -> bool:
    """Whether the manifest already maps every script to its value."""
    if not path.is_file():
        return False
    try:
        manifest = read_manifest(path)
    except (ManifestError, OSError):
        return False
    scripts = manifest.get("scripts")
    if not isinstance(scripts, dict):
        return False
    return all(scripts.get(key) == value for key, value in entries.items())


def manifest_fact(ctx: FactContext) -> EnvironmentFact:
    manifest_path = ctx.config.manifest.path
    return EnvironmentFact(
        name=PACKAGE_MANIFEST,
        kind=FactKind.MANIFEST,
        check=lambda: ctx.path(manifest_path).is_file(),
        converge=lambda: ctx.execute(
            "npm",
            PACKAGE_MANIFEST,
            operation="init",
            timeout=ctx.config.timeouts.install,
        ),
        depends_on=[NODE_RUNTIME],
        description=f"{manifest_path} initialised with npm init -y",
    )


def _merge_builtin(ctx: FactContext) -> Receipt:
    relative = ctx.config.manifest.path
    path = ctx.path(relative)
    try:
        merged = merge_scripts(read_manifest(path), ctx.config.manifest.scripts)
    except (ManifestError, OSError) as e:
        return Receipt.failure(adapter="manifest", action_id=MANIFEST_SCRIPTS, error=str(e))
    return ctx.execute(
        "filesystem",
        MANIFEST_SCRIPTS,
        operation="write",
        path=relative,
        content=render_manifest(merged),
    )


def _merge_jq(ctx: FactContext) -> Receipt:
    relative = ctx.config.manifest.path
    entries = json.dumps(ctx.config.manifest.scripts, ensure_ascii=False)
    filtered = ctx.execute(
        "shell",
        MANIFEST_SCRIPTS,
        command=["jq", "--argjson", "entries", entries, JQ_FILTER, relative],
        timeout=ctx.config.timeouts.probe,
    )
    if filtered.failed:
        return filtered
    return ctx.execute(
        "filesystem",
        MANIFEST_SCRIPTS,
        operation="write",
        path=relative,
        content=filtered.output.rstrip("\n") + "\n",
    )


def scripts_fact(ctx: FactContext) -> EnvironmentFact:
    manifest = ctx.config.manifest
    depends_on = [PACKAGE_MANIFEST]
    if manifest.patcher == "jq":
        depends_on.append("jq")
        converge = lambda: _merge_jq(ctx)  # noqa: E731
    else:
        converge = lambda: _merge_builtin(ctx)  # noqa: E731

    return EnvironmentFact(
        name=MANIFEST_SCRIPTS,
        kind=FactKind.MANIFEST,
        check=lambda: scripts_present(ctx.path(manifest.path), manifest.scripts),
        converge=converge,
        depends_on=depends_on,
        description=", ".join(f"{k}={v!r}" for k, v in manifest.scripts.items()),
    )
