"""
State file persistence — atomic read/write for ProvisionState.

State is stored as JSON in <target>/.devsetup/state.json. Writes are
atomic (write to temp file, then rename) to prevent corruption if the
process dies mid-write.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from devsetup.adapters.shell.filesystem import atomic_write_text
from devsetup.core.models.state import ProvisionState

logger = logging.getLogger(__name__)

# Default state file path (relative to the target directory)
DEFAULT_STATE_DIR = ".devsetup"
DEFAULT_STATE_FILE = "state.json"


def default_state_path(target: Path) -> Path:
    """Get the default state file path for a target directory."""
    return target / DEFAULT_STATE_DIR / DEFAULT_STATE_FILE


def load_state(path: Path) -> ProvisionState:
    """Load provisioning state from a JSON file.

    Returns:
        ProvisionState. If the file is missing or unreadable, a fresh state.
    """
    if not path.is_file():
        logger.info("No state file at %s — starting fresh", path)
        return ProvisionState()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        state = ProvisionState.model_validate(data)
        logger.debug("Loaded state from %s (updated_at=%s)", path, state.updated_at)
        return state
    except json.JSONDecodeError as e:
        logger.warning("Corrupt state file %s: %s — starting fresh", path, e)
        return ProvisionState()
    except Exception as e:
        logger.warning("Cannot load state from %s: %s — starting fresh", path, e)
        return ProvisionState()


def save_state(state: ProvisionState, path: Path) -> None:
    """Save provisioning state to a JSON file (atomic write)."""
    state.touch()

    data = state.model_dump(mode="json")
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    try:
        atomic_write_text(path, content)
        logger.debug("State saved to %s", path)
    except OSError as e:
        logger.error("Failed to save state to %s: %s", path, e)
        raise
