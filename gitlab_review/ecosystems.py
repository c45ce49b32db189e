"""Package manager ecosystems whose dependency directories get swapped."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Ecosystem:
    """A package manager with a conventional dependency directory."""

    name: str
    dependency_dir: str
    cache_namespace: str
    install_args: tuple[str, ...]
    container_prefix: tuple[str, ...] = ("ddev",)

    def install_command(self, use_container: bool = False) -> list[str]:
        if use_container:
            return [*self.container_prefix, *self.install_args]
        return list(self.install_args)

    def __str__(self) -> str:
        return self.name


YARN = Ecosystem(
    name="yarn",
    dependency_dir="node_modules",
    cache_namespace="yarn",
    install_args=("yarn", "install", "--prefer-offline"),
)

COMPOSER = Ecosystem(
    name="composer",
    dependency_dir="vendor",
    cache_namespace="composer",
    install_args=("composer", "install"),
)
