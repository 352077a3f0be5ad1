"""
ProvisionConfig — everything a provisioning run needs to know.

Loaded from devsetup.yml when present. Every default mirrors the
stock Node.js + ffmpeg web-server setup, so an empty config (or no
config file at all) provisions the standard project.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from devsetup.core.models.fact import InstallPolicy

DEFAULT_NVM_VERSION = "v0.39.3"
DEFAULT_NVM_INSTALL_URL = (
    "https://raw.githubusercontent.com/nvm-sh/nvm/{version}/install.sh"
)


class RuntimeConfig(BaseModel):
    """Node.js runtime provisioned through nvm."""

    nvm_version: str = DEFAULT_NVM_VERSION
    nvm_install_url: str = DEFAULT_NVM_INSTALL_URL
    nvm_dir: str = "~/.nvm"
    node_version: str = "--lts"
    update_npm: bool = True
    npm_policy: InstallPolicy = InstallPolicy.ALWAYS_REFRESH

    @property
    def installer_url(self) -> str:
        return self.nvm_install_url.format(version=self.nvm_version)


class SystemPackage(BaseModel):
    """A package installed through the system package manager."""

    name: str
    binary: str = ""                # executable to probe (default: name)
    policy: InstallPolicy = InstallPolicy.SKIP_IF_PRESENT
    required: bool = True

    @property
    def probe_name(self) -> str:
        return self.binary or self.name


class FileSpec(BaseModel):
    """A boilerplate file rendered from a packaged template."""

    path: str
    template: str


class ManifestConfig(BaseModel):
    """package.json location and the script entries it must carry."""

    path: str = "package.json"
    patcher: Literal["jq", "builtin"] = "jq"
    scripts: dict[str, str] = Field(
        default_factory=lambda: {
            "start": "node src/server.js",
            "dev": "nodemon src/server.js",
        }
    )


class CommandFact(BaseModel):
    """A user-declared fact expressed as two shell commands."""

    name: str
    check: str
    apply: str
    required: bool = True


class Timeouts(BaseModel):
    """Per-call timeouts (seconds) for external processes."""

    probe: int = 30
    install: int = 600


def _default_directories() -> list[str]:
    return [
        "src/controllers",
        "src/routes",
        "src/services",
        "src/utils",
        "src/middlewares",
        "src/config",
        "public",
        "storage",
        "tests/unit",
        "tests/integration",
    ]


def _default_files() -> list[FileSpec]:
    return [
        FileSpec(path="src/server.js", template="server.js"),
        FileSpec(path="src/app.js", template="app.js"),
        FileSpec(path="public/index.html", template="index.html"),
    ]


class ProvisionConfig(BaseModel):
    """Root provisioning config — loaded from devsetup.yml."""

    version: int = 1

    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    system_packages: list[SystemPackage] = Field(
        default_factory=lambda: [SystemPackage(name="ffmpeg")]
    )
    dependencies: list[str] = Field(
        default_factory=lambda: ["express", "dotenv", "axios"]
    )
    dev_dependencies: list[str] = Field(
        default_factory=lambda: ["jest", "supertest", "nodemon"]
    )
    directories: list[str] = Field(default_factory=_default_directories)
    files: list[FileSpec] = Field(default_factory=_default_files)
    manifest: ManifestConfig = Field(default_factory=ManifestConfig)
    commands: list[CommandFact] = Field(default_factory=list)

    use_sudo: bool = True
    timeouts: Timeouts = Field(default_factory=Timeouts)

    @field_validator("directories")
    @classmethod
    def _relative_directories(cls, value: list[str]) -> list[str]:
        for entry in value:
            if entry.startswith("/") or ".." in entry.split("/"):
                raise ValueError(f"Directory must be relative to the target: {entry}")
        return value

    @field_validator("files")
    @classmethod
    def _relative_files(cls, value: list[FileSpec]) -> list[FileSpec]:
        for spec in value:
            if spec.path.startswith("/") or ".." in spec.path.split("/"):
                raise ValueError(f"File path must be relative to the target: {spec.path}")
        return value
