"""
Shared fixtures: a synthetic `.src` / `.tgt` language pair and an in-memory
dependency lister.
"""

import tempfile
from pathlib import Path

import pytest

from pairmorph.config.models import LanguageConfig, PairMorphConfig, TranslationConfig
from pairmorph.languages.base.lister import DependencyLister
from pairmorph.resolver.dependency_resolver import DependencyResolver


class StaticLister(DependencyLister):
    """Returns a fixed closure per focal file and records every call."""

    def __init__(self, closures: dict[str, list[str]] | None = None, name: str = "src"):
        self.closures = closures or {}
        self.calls: list[Path] = []
        self._name = name

    @property
    def language_name(self) -> str:
        return self._name

    def list_dependencies(self, focal: Path) -> list[str]:
        self.calls.append(focal)
        return list(self.closures.get(focal.as_posix(), []))


@pytest.fixture
def project_dir():
    """Create a temporary project root."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def pair_config(project_dir):
    """Configuration for the synthetic src/tgt pair."""
    return PairMorphConfig(
        languages=[
            LanguageConfig(name="src", extension=".src", excluded_prefixes=["Prelude/"]),
            LanguageConfig(name="tgt", extension=".tgt"),
        ],
        translation=TranslationConfig(history_dir=project_dir / ".history"),
    )


@pytest.fixture
def write_files(project_dir):
    """Write {relative path: content} into the project root."""

    def _write(files: dict[str, str]) -> None:
        for rel_path, content in files.items():
            path = project_dir / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

    return _write


@pytest.fixture
def make_resolver(pair_config, project_dir):
    """Build a resolver whose src lister returns the given closures."""

    def _make(closures: dict[str, list[str]]) -> tuple[DependencyResolver, StaticLister]:
        lister = StaticLister(closures)
        resolver = DependencyResolver(
            pair_config,
            project_root=project_dir,
            listers={"src": lister, "tgt": StaticLister(closures, name="tgt")},
        )
        return resolver, lister

    return _make
