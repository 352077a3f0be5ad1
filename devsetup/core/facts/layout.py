"""
Layout and file facts — directories and boilerplate files.

Directory creation is idempotent by construction. File facts compare
sha256 digests so identical content is never rewritten.
"""

from __future__ import annotations

import logging

from devsetup.core.data import content_digest, load_template, template_digest
from devsetup.core.facts.base import FactContext
from devsetup.core.models.config import FileSpec
from devsetup.core.models.fact import EnvironmentFact, FactKind

logger = logging.getLogger(__name__)


def directory_fact(ctx: FactContext, relative: str) -> EnvironmentFact:
    name = f"directory {relative}"
    return EnvironmentFact(
        name=name,
        kind=FactKind.LAYOUT,
        check=lambda: ctx.path(relative).is_dir(),
        converge=lambda: ctx.execute("filesystem", name, operation="mkdir", path=relative),
    )


def file_fact(ctx: FactContext, spec: FileSpec) -> EnvironmentFact:
    name = f"file {spec.path}"
    # Fail at build time on an unknown template, not mid-run
    expected = template_digest(spec.template)

    def check() -> bool:
        target = ctx.path(spec.path)
        if not target.is_file():
            return False
        # Raw bytes: a CRLF rewrite is a different file
        try:
            return content_digest(target.read_bytes()) == expected
        except OSError as e:
            logger.debug("Cannot read %s: %s", target, e)
            return False

    return EnvironmentFact(
        name=name,
        kind=FactKind.FILE,
        check=check,
        converge=lambda: ctx.execute(
            "filesystem",
            name,
            operation="write",
            path=spec.path,
            content=load_template(spec.template),
        ),
        description=f"{spec.path} from template {spec.template}",
    )


def build_layout_facts(ctx: FactContext) -> list[EnvironmentFact]:
    facts = [directory_fact(ctx, d) for d in ctx.config.directories]
    facts += [file_fact(ctx, spec) for spec in ctx.config.files]
    return facts
