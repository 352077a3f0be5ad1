"""devsetup — idempotent provisioning of a Node.js development project."""

__version__ = "0.1.0"
