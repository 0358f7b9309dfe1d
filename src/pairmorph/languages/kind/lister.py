"""
Kind dependency lister, backed by the kind-deps tool.
"""

from pathlib import Path

from pairmorph.languages.base.lister import SubprocessDependencyLister


class KindDependencyLister(SubprocessDependencyLister):
    """Recursive lister backed by the kind-deps tool."""

    default_command = ["kind-deps", "{file}", "--recursive"]

    def __init__(self, command: list[str] | None = None, project_root: Path | None = None, timeout: int = 120):
        super().__init__("kind", command, project_root, timeout)
