"""
Dependency pairing resolver.

Given a focal file, computes its same-language dependency closure and checks
that every dependency exists in both languages. Translation is only allowed
when the whole closure is paired: partial context lets the engine invent
definitions for symbols it has never seen.
"""

import logging
from pathlib import Path

from pairmorph.config.models import (
    DependencyClosure,
    Existence,
    FileRef,
    LanguageConfig,
    MissingEntry,
    MissingSide,
    PairMorphConfig,
    PairRecord,
    ResolutionResult,
)
from pairmorph.languages.base.lister import DependencyLister
from pairmorph.languages.registry import LanguagePluginRegistry

logger = logging.getLogger(__name__)


class UnsupportedExtensionError(Exception):
    """Raised when a file belongs to neither language of the pair."""

    def __init__(self, path: str, supported: list[str]):
        self.path = path
        self.supported = supported
        super().__init__(
            f"Unsupported file type: {Path(path).suffix or '(none)'} for {path}. "
            f"Supported extensions: {', '.join(supported)}"
        )


class MissingDependencyError(Exception):
    """Raised when the dependency closure is not fully paired."""

    def __init__(self, missing: list[MissingEntry]):
        self.missing = missing
        lines = "\n".join(f"- {entry.path}" for entry in missing)
        super().__init__(f"Missing dependencies. Generate these files first:\n{lines}")

    @property
    def paths(self) -> list[str]:
        return [entry.path for entry in self.missing]


def swap_extension(path: str, extension: str) -> str:
    """Replace the last extension of a path, keeping its directory part as written."""
    p = Path(path)
    return str(p.with_suffix(extension)) if p.suffix else f"{path}{extension}"


class DependencyResolver:
    """Resolves and validates the paired dependency closure of a focal file."""

    def __init__(
        self,
        config: PairMorphConfig,
        project_root: Path | None = None,
        listers: dict[str, DependencyLister] | None = None,
    ):
        self.config = config
        self.project_root = project_root or Path(".")
        self._listers = dict(listers or {})

    # =========================================================================
    # Languages
    # =========================================================================

    def language_of(self, path: str) -> LanguageConfig:
        """Pick the language of a file by its extension."""
        language = self.config.language_for_extension(Path(path).suffix)
        if language is None:
            raise UnsupportedExtensionError(
                path, [lang.extension for lang in self.config.languages]
            )
        return language

    def counterpart_path(self, path: str) -> str:
        """Path of the same module in the other language."""
        other = self.config.other_language(self.language_of(path))
        return swap_extension(path, other.extension)

    def get_lister(self, language: LanguageConfig) -> DependencyLister:
        if language.name not in self._listers:
            self._listers[language.name] = LanguagePluginRegistry.get_lister(
                language,
                project_root=self.project_root,
                timeout=self.config.translation.lister_timeout,
            )
        return self._listers[language.name]

    # =========================================================================
    # Reading
    # =========================================================================

    def read_file_ref(self, path: str, language: LanguageConfig) -> FileRef:
        """
        Read a file fresh from disk; unreadable files count as missing.

        Bytes that are not valid UTF-8 are replaced rather than rejected.
        """
        try:
            content = (self.project_root / path).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.debug(f"Treating {path} as missing: {e}")
            return FileRef(path=path, language=language.name, existence=Existence.MISSING)
        return FileRef(
            path=path, language=language.name, existence=Existence.PRESENT, content=content
        )

    # =========================================================================
    # Closure
    # =========================================================================

    def compute_closure(self, focal: str) -> DependencyClosure:
        """
        List the focal file's dependencies in its own language.

        Entries under an excluded shared namespace, duplicates and the focal
        file itself are dropped; the lister's order is kept unless
        sort_dependencies is set.
        """
        language = self.language_of(focal)
        raw = self.get_lister(language).list_dependencies(Path(focal))

        focal_key = Path(focal).as_posix()
        seen: set[str] = set()
        paths: list[str] = []
        for dep in raw:
            key = Path(dep).as_posix()
            if key == focal_key or key in seen:
                continue
            if any(key.startswith(prefix) for prefix in language.excluded_prefixes):
                continue
            seen.add(key)
            paths.append(dep)

        if self.config.translation.sort_dependencies:
            paths.sort(key=lambda p: Path(p).as_posix())

        logger.info(f"{focal}: {len(paths)} dependencies ({len(raw) - len(paths)} filtered)")
        return DependencyClosure(focal=focal, paths=paths)

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve(self, focal: str) -> ResolutionResult:
        """
        Pair every dependency of the focal file with its counterpart.

        Args:
            focal: Focal file path, relative to the project root

        Returns:
            ResolutionResult listing eligible pairs and every missing file

        Raises:
            UnsupportedExtensionError: If the focal extension is not in the pair
        """
        source_language = self.language_of(focal)
        target_language = self.config.other_language(source_language)

        focal_ref = self.read_file_ref(focal, source_language)
        counterpart_ref = self.read_file_ref(
            swap_extension(focal, target_language.extension), target_language
        )

        missing: list[MissingEntry] = []
        if not focal_ref.exists:
            missing.append(MissingEntry(path=focal, side=MissingSide.SOURCE, dependency=focal))

        closure = self.compute_closure(focal)
        pairs: list[PairRecord] = []
        for dep in closure.paths:
            source_ref = self.read_file_ref(dep, source_language)
            target_ref = self.read_file_ref(
                swap_extension(dep, target_language.extension), target_language
            )

            if not source_ref.exists:
                missing.append(MissingEntry(path=dep, side=MissingSide.SOURCE, dependency=dep))
            if not target_ref.exists:
                missing.append(
                    MissingEntry(path=target_ref.path, side=MissingSide.TARGET, dependency=dep)
                )

            pair = PairRecord(source=source_ref, target=target_ref)
            if pair.complete:
                pairs.append(pair)

        if missing:
            logger.warning(f"{focal}: {len(missing)} missing files in the dependency closure")

        return ResolutionResult(
            focal=focal_ref,
            counterpart=counterpart_ref,
            closure=closure,
            pairs=pairs,
            missing=missing,
            source_language=source_language,
            target_language=target_language,
        )

    def require_complete(self, result: ResolutionResult) -> ResolutionResult:
        """Raise MissingDependencyError listing every missing file, if any."""
        if not result.is_complete:
            raise MissingDependencyError(result.missing)
        return result
