"""
Boilerplate templates shipped with devsetup.

The scaffolded project files (``src/server.js``, ``src/app.js``,
``public/index.html``) are static data, kept verbatim under
``devsetup/core/data/templates/`` and read on demand.

Usage::

    from devsetup.core.data import load_template, template_digest

    content = load_template("server.js")
"""

from __future__ import annotations

import hashlib
import logging
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).parent / "templates"


class TemplateNotFoundError(LookupError):
    """Raised when a file spec names a template that is not shipped."""


def available_templates() -> list[str]:
    """Names of all shipped templates."""
    if not _TEMPLATES_DIR.is_dir():
        return []
    return sorted(p.name for p in _TEMPLATES_DIR.iterdir() if p.is_file())


@lru_cache(maxsize=None)
def load_template(name: str) -> str:
    """Return the text of a shipped template.

    Raises:
        TemplateNotFoundError: If no template has that name.
    """
    path = _TEMPLATES_DIR / name
    if "/" in name or not path.is_file():
        raise TemplateNotFoundError(
            f"Unknown template '{name}'. Available: {', '.join(available_templates())}"
        )
    content = path.read_text(encoding="utf-8")
    logger.debug("Loaded template %s (%d bytes)", name, len(content))
    return content


def content_digest(content: str | bytes) -> str:
    """sha256 hex digest of raw bytes (text is UTF-8 encoded first)."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def template_digest(name: str) -> str:
    """sha256 of a shipped template."""
    return content_digest(load_template(name))
