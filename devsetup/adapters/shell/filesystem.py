"""
Filesystem adapter — project layout, boilerplate files and the manifest.

Going through an adapter (rather than calling ``Path.write_text`` from
the fact) gives file changes the same receipts, dry-run handling and
audit trail as package installs.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Callable

from devsetup.adapters.base import Adapter, ExecutionContext
from devsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)


def atomic_write_text(target: Path, content: str) -> None:
    """Write ``content`` to ``target`` via temp file + rename.

    The temp file lives in the target's directory so the rename never
    crosses filesystems. An interrupted write leaves the old file intact.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        dir=target.parent,
        prefix=f".{target.name}.",
        suffix=".tmp",
    )
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.replace(tmp, target)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


class FilesystemAdapter(Adapter):
    """Paths relative to the target directory, with receipts.

    Action params:
        operation (str): 'write' or 'mkdir'.
        path (str): Path relative to the target (absolute paths allowed).
        content (str): Text to write ('write' only).
    """

    def __init__(self) -> None:
        self._operations: dict[str, Callable[[ExecutionContext, Path], Receipt]] = {
            "write": self._write,
            "mkdir": self._mkdir,
        }

    @property
    def name(self) -> str:
        return "filesystem"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if operation not in self._operations:
            return False, (
                f"Unknown operation '{operation}'. "
                f"Valid: {', '.join(sorted(self._operations))}"
            )
        if not params.get("path"):
            return False, "Missing required param: 'path'"
        if operation == "write" and not isinstance(params.get("content"), str):
            return False, "Missing required param: 'content' for write operation"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.action.params["operation"]
        target = Path(context.working_dir) / context.action.params["path"]
        try:
            return self._operations[operation](context, target)
        except OSError as e:
            return self._fail(context, f"Filesystem error: {e}", operation=operation, path=str(target))

    # ── Operations ──────────────────────────────────────────────

    def _write(self, ctx: ExecutionContext, target: Path) -> Receipt:
        content: str = ctx.action.params["content"]
        if target.is_file() and target.read_bytes() == content.encode("utf-8"):
            return self._ok(ctx, f"Unchanged: {target}", path=str(target), changed=False)

        atomic_write_text(target, content)
        logger.debug("Wrote %d bytes to %s", len(content), target)
        return self._ok(
            ctx,
            f"Written {len(content)} bytes to {target}",
            path=str(target),
            size=len(content),
            changed=True,
        )

    def _mkdir(self, ctx: ExecutionContext, target: Path) -> Receipt:
        existed = target.is_dir()
        target.mkdir(parents=True, exist_ok=True)
        return self._ok(ctx, f"Directory ready: {target}", path=str(target), changed=not existed)

    # ── Receipts ────────────────────────────────────────────────

    def _ok(self, ctx: ExecutionContext, output: str, **metadata) -> Receipt:
        return Receipt.success(
            adapter=self.name, action_id=ctx.action.id, output=output, metadata=metadata,
        )

    def _fail(self, ctx: ExecutionContext, error: str, **metadata) -> Receipt:
        return Receipt.failure(
            adapter=self.name, action_id=ctx.action.id, error=error, metadata=metadata,
        )
