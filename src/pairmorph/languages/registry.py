"""
Dependency lister registry.

Central registry for all dependency listers. Maps a configured language to the
lister that computes its closures.
"""

from pathlib import Path
from typing import Type

from pairmorph.config.models import LanguageConfig, ListerMode
from pairmorph.languages.agda.lister import AgdaDependencyLister, AgdaImportScanner
from pairmorph.languages.base.lister import DependencyLister, SubprocessDependencyLister
from pairmorph.languages.kind.lister import KindDependencyLister


class LanguagePluginRegistry:
    """Registry for dependency listers."""

    _subprocess_listers: dict[str, Type[SubprocessDependencyLister]] = {
        "agda": AgdaDependencyLister,
        "kind": KindDependencyLister,
    }

    _scanners: dict[str, Type[DependencyLister]] = {
        "agda": AgdaImportScanner,
    }

    @classmethod
    def get_lister(
        cls,
        language: LanguageConfig,
        project_root: Path | None = None,
        timeout: int = 120,
    ) -> DependencyLister:
        """
        Get a dependency lister for a configured language.

        Args:
            language: The language configuration
            project_root: Directory the lister runs in
            timeout: Subprocess timeout in seconds

        Returns:
            Instantiated dependency lister

        Raises:
            ValueError: If an in-process scanner is requested for a language without one
        """
        name = language.name.lower()

        if language.lister == ListerMode.SCAN:
            if name not in cls._scanners:
                raise ValueError(
                    f"No in-process scanner for language: {language.name}. "
                    f"Scanners available for: {sorted(cls._scanners)}"
                )
            return cls._scanners[name](project_root=project_root)

        command = language.deps_command or None
        if name in cls._subprocess_listers:
            return cls._subprocess_listers[name](
                command=command, project_root=project_root, timeout=timeout
            )
        return SubprocessDependencyLister(
            language.name, command=command, project_root=project_root, timeout=timeout
        )

    @classmethod
    def register_lister(cls, language_name: str, lister_class: Type[SubprocessDependencyLister]):
        """
        Register a subprocess lister for an additional language.

        Args:
            language_name: The language name as used in configuration
            lister_class: The lister class (must extend SubprocessDependencyLister)
        """
        if not issubclass(lister_class, SubprocessDependencyLister):
            raise TypeError(f"{lister_class} must extend SubprocessDependencyLister")

        cls._subprocess_listers[language_name.lower()] = lister_class

    @classmethod
    def has_scanner(cls, language_name: str) -> bool:
        """Whether an in-process scanner exists for the language."""
        return language_name.lower() in cls._scanners

    @classmethod
    def list_supported_languages(cls) -> list[str]:
        """Languages with a dedicated lister."""
        return sorted(set(cls._subprocess_listers) | set(cls._scanners))
