"""
Base dependency lister interface.

Every language on either side of the pair provides a DependencyLister. The
resolver only talks to this interface, so a subprocess-backed lister can be
swapped for an in-process analyzer without touching it.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class DependencyLister(ABC):
    """
    Abstract base class for dependency listers.

    A lister returns the transitive, same-language dependencies of a file as
    paths relative to the project root, dependencies before dependents.
    """

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the language name (e.g., 'agda', 'kind')."""
        pass

    @abstractmethod
    def list_dependencies(self, focal: Path) -> list[str]:
        """
        List the recursive dependencies of a file.

        Args:
            focal: Path to the focal file, relative to the project root

        Returns:
            Dependency paths in a stable order. Listing failures yield an
            empty list rather than an exception.
        """
        pass


class SubprocessDependencyLister(DependencyLister):
    """
    Lister backed by an external recursive dependency tool.

    The tool is run once per focal file and must print one path per line.
    A non-zero exit, a missing executable or a timeout are treated as
    "no dependencies".
    """

    default_command: list[str] = []

    def __init__(
        self,
        language_name: str,
        command: list[str] | None = None,
        project_root: Path | None = None,
        timeout: int = 120,
    ):
        self._language_name = language_name
        self.command = list(command or self.default_command)
        self.project_root = project_root or Path(".")
        self.timeout = timeout

    @property
    def language_name(self) -> str:
        return self._language_name

    def build_command(self, focal: Path) -> list[str]:
        """Substitute the focal path into the command template."""
        if not self.command:
            return []
        if any("{file}" in part for part in self.command):
            return [part.replace("{file}", str(focal)) for part in self.command]
        return [*self.command, str(focal)]

    def list_dependencies(self, focal: Path) -> list[str]:
        cmd = self.build_command(focal)
        if not cmd:
            logger.warning(f"No dependency lister configured for {self.language_name}")
            return []

        logger.debug(f"Listing dependencies: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                cwd=self.project_root,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError:
            logger.warning(f"Dependency lister not found: {cmd[0]}")
            return []
        except subprocess.TimeoutExpired:
            logger.warning(f"Dependency lister timed out after {self.timeout} seconds: {cmd[0]}")
            return []

        if result.returncode != 0:
            error_msg = result.stderr.strip() or f"exit code {result.returncode}"
            logger.warning(f"Error getting dependencies for {focal}: {error_msg}")
            return []

        return [line.strip() for line in result.stdout.splitlines() if line.strip()]
