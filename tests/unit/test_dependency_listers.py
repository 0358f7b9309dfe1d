"""
Unit tests for dependency listers and the lister registry.
"""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from pairmorph.config.models import LanguageConfig, ListerMode
from pairmorph.languages.agda.lister import (
    AgdaDependencyLister,
    AgdaImportScanner,
    extract_imports,
    module_to_path,
)
from pairmorph.languages.base.lister import SubprocessDependencyLister
from pairmorph.languages.kind.lister import KindDependencyLister
from pairmorph.languages.registry import LanguagePluginRegistry


def _completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> MagicMock:
    result = MagicMock()
    result.stdout = stdout
    result.stderr = stderr
    result.returncode = returncode
    return result


# =========================================================================
# Subprocess listers
# =========================================================================


class TestSubprocessLister:
    @patch("pairmorph.languages.base.lister.subprocess.run")
    def test_one_path_per_line(self, mock_run):
        mock_run.return_value = _completed("Base/Bool/Bool.agda\n\nBase/Nat/Nat.agda\n")

        deps = AgdaDependencyLister().list_dependencies(Path("Main.agda"))

        assert deps == ["Base/Bool/Bool.agda", "Base/Nat/Nat.agda"]
        cmd = mock_run.call_args.args[0]
        assert cmd == ["agda-deps", "Main.agda", "--recursive"]

    @patch("pairmorph.languages.base.lister.subprocess.run")
    def test_nonzero_exit_means_no_dependencies(self, mock_run):
        mock_run.return_value = _completed("partial\n", returncode=1, stderr="parse error")

        assert KindDependencyLister().list_dependencies(Path("Main.kind")) == []

    @patch("pairmorph.languages.base.lister.subprocess.run")
    def test_missing_executable_means_no_dependencies(self, mock_run):
        mock_run.side_effect = FileNotFoundError("kind-deps")

        assert KindDependencyLister().list_dependencies(Path("Main.kind")) == []

    @patch("pairmorph.languages.base.lister.subprocess.run")
    def test_timeout_means_no_dependencies(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired("agda-deps", 1)

        assert AgdaDependencyLister(timeout=1).list_dependencies(Path("Main.agda")) == []

    def test_command_without_placeholder_appends_file(self):
        lister = SubprocessDependencyLister("x", command=["deps", "-r"])

        assert lister.build_command(Path("A.x")) == ["deps", "-r", "A.x"]

    @patch("pairmorph.languages.base.lister.subprocess.run")
    def test_no_command_configured(self, mock_run):
        assert SubprocessDependencyLister("x").list_dependencies(Path("A.x")) == []
        mock_run.assert_not_called()


# =========================================================================
# In-process Agda scanner
# =========================================================================


def test_module_to_path():
    assert module_to_path("Base.Nat.add") == "Base/Nat/add.agda"


def test_extract_imports_ignores_comments():
    source = (
        "module Base.Nat.eq where\n"
        "\n"
        "open import Base.Nat.Nat\n"
        "-- open import Base.Old\n"
        "import Base.Bool.Bool as B\n"
        "open import Base.Nat.Nat\n"
    )

    assert extract_imports(source) == ["Base.Nat.Nat", "Base.Bool.Bool"]


def test_scanner_lists_dependencies_first(project_dir, write_files):
    write_files({
        "Main.agda": "open import Base.Nat.add\nopen import Base.Bool.Bool\n",
        "Base/Nat/add.agda": "open import Base.Nat.Nat\nopen import Agda.Builtin.Nat\n",
        "Base/Nat/Nat.agda": "module Base.Nat.Nat where\n",
        "Base/Bool/Bool.agda": "open import Base.Nat.Nat\n",
    })

    deps = AgdaImportScanner(project_dir).list_dependencies(Path("Main.agda"))

    assert deps == [
        "Base/Nat/Nat.agda",
        "Agda/Builtin/Nat.agda",
        "Base/Nat/add.agda",
        "Base/Bool/Bool.agda",
    ]


def test_scanner_tolerates_cycles(project_dir, write_files):
    write_files({
        "A.agda": "open import B\n",
        "B.agda": "open import A\n",
    })

    assert AgdaImportScanner(project_dir).list_dependencies(Path("A.agda")) == ["B.agda"]


# =========================================================================
# Registry
# =========================================================================


class TestRegistry:
    def test_known_languages(self):
        agda = LanguageConfig(name="agda", extension=".agda")
        kind = LanguageConfig(name="kind", extension=".kind", deps_command=["my-kind-deps", "{file}"])

        assert isinstance(LanguagePluginRegistry.get_lister(agda), AgdaDependencyLister)
        kind_lister = LanguagePluginRegistry.get_lister(kind)
        assert isinstance(kind_lister, KindDependencyLister)
        assert kind_lister.command == ["my-kind-deps", "{file}"]

    def test_unknown_language_uses_generic_lister(self):
        lean = LanguageConfig(name="lean", extension=".lean", deps_command=["lean-deps"])

        lister = LanguagePluginRegistry.get_lister(lean)

        assert type(lister) is SubprocessDependencyLister
        assert lister.language_name == "lean"

    def test_scan_mode(self, project_dir):
        agda = LanguageConfig(name="agda", extension=".agda", lister=ListerMode.SCAN)

        lister = LanguagePluginRegistry.get_lister(agda, project_root=project_dir)

        assert isinstance(lister, AgdaImportScanner)

    def test_scan_mode_unavailable(self):
        kind = LanguageConfig(name="kind", extension=".kind", lister=ListerMode.SCAN)

        with pytest.raises(ValueError):
            LanguagePluginRegistry.get_lister(kind)

    def test_register_lister_requires_subclass(self):
        with pytest.raises(TypeError):
            LanguagePluginRegistry.register_lister("lean", AgdaImportScanner)
