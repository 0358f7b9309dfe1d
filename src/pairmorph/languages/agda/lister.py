"""
Agda dependency listers.

AgdaDependencyLister shells out to `agda-deps --recursive`. AgdaImportScanner
follows `import` / `open import` statements in-process and needs no external
tool.
"""

import logging
import re
from pathlib import Path

from pairmorph.languages.base.lister import DependencyLister, SubprocessDependencyLister

logger = logging.getLogger(__name__)

AGDA_EXTENSION = ".agda"

# open import Base.Bool.Bool
# import Base.Nat.Nat as N
_IMPORT_RE = re.compile(r"^\s*(?:open\s+)?import\s+([^\s;()]+)")


class AgdaDependencyLister(SubprocessDependencyLister):
    """Recursive lister backed by the agda-deps tool."""

    default_command = ["agda-deps", "{file}", "--recursive"]

    def __init__(self, command: list[str] | None = None, project_root: Path | None = None, timeout: int = 120):
        super().__init__("agda", command, project_root, timeout)


def module_to_path(module_name: str) -> str:
    """Base.Bool.Bool -> Base/Bool/Bool.agda"""
    return "/".join(module_name.split(".")) + AGDA_EXTENSION


def extract_imports(source_code: str) -> list[str]:
    """Return imported module names in order of appearance."""
    modules: list[str] = []
    for line in source_code.splitlines():
        line = line.split("--", 1)[0]
        match = _IMPORT_RE.match(line)
        if match and match.group(1) not in modules:
            modules.append(match.group(1))
    return modules


class AgdaImportScanner(DependencyLister):
    """
    In-process replacement for agda-deps.

    Walks imports depth-first and yields each module after its own imports,
    so dependencies always precede dependents. Modules that are not on disk
    are still reported (the resolver decides what is missing) but are not
    descended into.
    """

    def __init__(self, project_root: Path | None = None):
        self.project_root = project_root or Path(".")

    @property
    def language_name(self) -> str:
        return "agda"

    def list_dependencies(self, focal: Path) -> list[str]:
        focal_key = focal.as_posix()
        ordered: list[str] = []
        visited: set[str] = {focal_key}

        def visit(rel_path: str) -> None:
            file_path = self.project_root / rel_path
            try:
                source = file_path.read_text(encoding="utf-8")
            except OSError:
                logger.debug(f"Not scanning unreadable module: {rel_path}")
                return
            for module_name in extract_imports(source):
                dep = module_to_path(module_name)
                if dep in visited:
                    continue
                visited.add(dep)
                visit(dep)
                ordered.append(dep)

        visit(focal_key)
        return ordered
