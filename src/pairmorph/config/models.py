"""
Core configuration and data models for PairMorph.

Defines the configuration structures and the per-run records that flow through
the pipeline (file references, pairs, context blocks, response records), all
using Pydantic for validation.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# Language Configuration
# ============================================================================


class ListerMode(str, Enum):
    """How dependencies of a file are listed."""

    SUBPROCESS = "subprocess"  # External recursive lister (e.g. agda-deps)
    SCAN = "scan"  # In-process import scanner


class LanguageConfig(BaseModel):
    """One side of the translation pair."""

    name: str = Field(description="Language name (e.g., 'agda', 'kind')")
    extension: str = Field(description="File extension including the dot (e.g., '.agda')")
    fence_tag: str | None = Field(
        default=None, description="Code fence tag used in prompts (defaults to the name)"
    )
    deps_command: list[str] = Field(
        default_factory=list,
        description="Recursive dependency lister command; '{file}' is replaced by the focal path",
    )
    excluded_prefixes: list[str] = Field(
        default_factory=list,
        description="Always-available shared-library namespaces left out of the closure",
    )
    lister: ListerMode = Field(default=ListerMode.SUBPROCESS, description="Dependency lister mode")

    @field_validator("extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        """Normalize extensions to start with a dot."""
        v = v.strip()
        if not v:
            raise ValueError("Extension must not be empty")
        return v if v.startswith(".") else f".{v}"

    @property
    def tag(self) -> str:
        """Fence tag for code blocks of this language."""
        return self.fence_tag or self.name


# ============================================================================
# LLM Configuration
# ============================================================================


class LLMProvider(str, Enum):
    """Supported engine vendors."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    OPENROUTER = "openrouter"


class ModelEntry(BaseModel):
    """A model reachable through a selector key."""

    provider: LLMProvider
    model: str


def default_model_catalog() -> dict[str, ModelEntry]:
    """Map of model selector keys to vendor models."""
    return {
        # GPT by OpenAI
        "gm": ModelEntry(provider=LLMProvider.OPENAI, model="gpt-4o-mini"),
        "g": ModelEntry(provider=LLMProvider.OPENAI, model="gpt-4o-2024-08-06"),
        "G": ModelEntry(provider=LLMProvider.OPENAI, model="gpt-4-32k-0314"),
        # o1 by OpenAI
        "om": ModelEntry(provider=LLMProvider.OPENAI, model="o1-mini"),
        "o": ModelEntry(provider=LLMProvider.OPENAI, model="o1-preview"),
        # Claude by Anthropic
        "cm": ModelEntry(provider=LLMProvider.ANTHROPIC, model="claude-3-haiku-20240307"),
        "c": ModelEntry(provider=LLMProvider.ANTHROPIC, model="claude-3-5-sonnet-20241022"),
        "C": ModelEntry(provider=LLMProvider.ANTHROPIC, model="claude-3-opus-20240229"),
        # Llama by Meta (through OpenRouter)
        "lm": ModelEntry(provider=LLMProvider.OPENROUTER, model="meta-llama/llama-3.1-8b-instruct"),
        "l": ModelEntry(provider=LLMProvider.OPENROUTER, model="meta-llama/llama-3.1-70b-instruct"),
        "L": ModelEntry(provider=LLMProvider.OPENROUTER, model="meta-llama/llama-3.1-405b-instruct"),
        # Gemini by Google (through OpenRouter)
        "i": ModelEntry(provider=LLMProvider.OPENROUTER, model="google/gemini-flash-1.5"),
        "I": ModelEntry(provider=LLMProvider.OPENROUTER, model="google/gemini-pro-1.5"),
    }


class LLMConfig(BaseModel):
    """Configuration for the engine call."""

    default_model: str = Field(default="c", description="Selector key used when none is given")
    models: dict[str, ModelEntry] = Field(default_factory=default_model_catalog)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(default=8192, gt=0, description="Maximum tokens in the reply")
    stream: bool = Field(default=True, description="Echo the reply to the terminal while it streams")
    system_cacheable: bool = Field(
        default=True, description="Mark the system prompt as cacheable (Anthropic prompt caching)"
    )
    credentials_dir: Path = Field(
        default=Path("~/.config"), description="Directory holding <vendor>.token files"
    )
    timeout: int = Field(default=600, description="Request timeout in seconds")


# ============================================================================
# Translation Configuration
# ============================================================================


class TranslationConfig(BaseModel):
    """Configuration for context assembly and output."""

    heading_marker: str = Field(default="# ", description="Prefix of file heading lines")
    sort_dependencies: bool = Field(
        default=False, description="Sort the closure by path instead of keeping lister order"
    )
    history_dir: Path = Field(
        default=Path("~/.ai/pairmorph_history"), description="Directory for prompt transcripts"
    )
    system_prompt_path: Path | None = Field(
        default=None, description="File with translation rules replacing the built-in ones"
    )
    lister_timeout: int = Field(default=120, description="Timeout for dependency listers (seconds)")


# ============================================================================
# Main Configuration
# ============================================================================


class PairMorphConfig(BaseModel):
    """Root configuration model for PairMorph."""

    languages: list[LanguageConfig] = Field(
        default_factory=lambda: [
            LanguageConfig(
                name="agda",
                extension=".agda",
                deps_command=["agda-deps", "{file}", "--recursive"],
                excluded_prefixes=["Agda/"],
            ),
            LanguageConfig(
                name="kind",
                extension=".kind",
                deps_command=["kind-deps", "{file}", "--recursive"],
            ),
        ]
    )
    llm: LLMConfig = Field(default_factory=LLMConfig)
    translation: TranslationConfig = Field(default_factory=TranslationConfig)

    @model_validator(mode="after")
    def validate_pair(self) -> "PairMorphConfig":
        """A pair is exactly two languages with distinct extensions."""
        if len(self.languages) != 2:
            raise ValueError(f"Exactly two languages are required, got {len(self.languages)}")
        first, second = self.languages
        if first.extension == second.extension:
            raise ValueError(f"Both languages use the extension '{first.extension}'")
        return self

    @model_validator(mode="after")
    def validate_listers(self) -> "PairMorphConfig":
        """Scan mode needs an in-process scanner for the language."""
        from pairmorph.languages.registry import LanguagePluginRegistry

        for language in self.languages:
            if language.lister != ListerMode.SCAN:
                continue
            if not LanguagePluginRegistry.has_scanner(language.name):
                raise ValueError(
                    f"No in-process scanner for language '{language.name}'; "
                    f"use lister: subprocess"
                )
        return self

    def language_for_extension(self, extension: str) -> LanguageConfig | None:
        """Find the configured language owning an extension."""
        for language in self.languages:
            if language.extension == extension:
                return language
        return None

    def other_language(self, language: LanguageConfig) -> LanguageConfig:
        """Return the opposite side of the pair."""
        first, second = self.languages
        return second if language.extension == first.extension else first

    def get_pair_description(self) -> str:
        """Human-readable description of the configured pair."""
        first, second = self.languages
        return f"{first.name} ({first.extension}) ↔ {second.name} ({second.extension})"


# ============================================================================
# Per-run Models (used across the pipeline)
# ============================================================================


class Existence(str, Enum):
    """Whether a file was found on disk."""

    PRESENT = "present"
    MISSING = "missing"


class FileRef(BaseModel):
    """A file in one of the two languages, read fresh for this run."""

    path: str = Field(description="Path as listed (relative to the project root)")
    language: str = Field(description="Language name")
    existence: Existence
    content: str | None = None

    @property
    def exists(self) -> bool:
        return self.existence == Existence.PRESENT


class PairRecord(BaseModel):
    """The same logical module in both languages."""

    source: FileRef
    target: FileRef

    @property
    def complete(self) -> bool:
        return self.source.exists and self.target.exists


class MissingSide(str, Enum):
    """Which half of a pair is absent."""

    SOURCE = "source"
    TARGET = "target"


class MissingEntry(BaseModel):
    """A file that must exist before the focal file can be translated."""

    path: str
    side: MissingSide
    dependency: str = Field(description="Closure entry this file belongs to")


class DependencyClosure(BaseModel):
    """Same-language dependencies transitively reachable from the focal file."""

    focal: str
    paths: list[str] = Field(default_factory=list)


class ResolutionResult(BaseModel):
    """Output of the pairing resolver."""

    focal: FileRef
    counterpart: FileRef
    closure: DependencyClosure
    pairs: list[PairRecord] = Field(default_factory=list)
    missing: list[MissingEntry] = Field(default_factory=list)
    source_language: LanguageConfig
    target_language: LanguageConfig

    @property
    def is_complete(self) -> bool:
        return not self.missing


class BlockStatus(str, Enum):
    """Label attached to a context block heading."""

    PLAIN = "plain"
    DRAFT = "draft"  # Existing counterpart to review and correct
    MISSING = "missing"  # Counterpart to generate from scratch


class ContextBlock(BaseModel):
    """One labeled file in the prompt."""

    model_config = ConfigDict(frozen=True)

    path: str
    language: str = Field(description="Fence tag of the block")
    content: str
    status: BlockStatus = BlockStatus.PLAIN


class ResponseRecord(BaseModel):
    """A file extracted from the engine's reply."""

    path: str
    language: str | None = None
    content: str = ""
