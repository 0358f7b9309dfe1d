"""
Translation pipeline orchestrator.

Runs one focal file through the whole pipeline:
1. Resolve the model selector key
2. Resolve and validate the paired dependency closure
3. Assemble the prompt context and save the transcript
4. Call the engine (streamed, no retry)
5. Parse the response and write the counterpart file
"""

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from rich.console import Console

from pairmorph.config.models import PairMorphConfig, ResolutionResult, ResponseRecord
from pairmorph.context.assembler import ContextAssembler, ContextDocument
from pairmorph.parser.response_parser import parse_response
from pairmorph.resolver.dependency_resolver import DependencyResolver
from pairmorph.state.transcript import save_prompt_log
from pairmorph.translator.llm_client import Conversation, create_engine, resolve_model
from pairmorph.translator.prompts import build_system_prompt
from pairmorph.writer.file_writer import FileWriter, WriteReport

logger = logging.getLogger(__name__)

console = Console()


class PipelineResult(BaseModel):
    """Everything one run produced."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    focal: str
    counterpart: str
    engine_key: str
    resolution: ResolutionResult
    document: ContextDocument
    system_prompt: str = ""
    prompt_log: Path | None = None
    response: str | None = None
    records: list[ResponseRecord] = Field(default_factory=list)
    report: WriteReport | None = None

    @property
    def dry_run(self) -> bool:
        return self.response is None


class TranslationPipeline:
    """Orchestrates a single-file translation."""

    def __init__(
        self,
        config: PairMorphConfig,
        project_root: Path | None = None,
        resolver: DependencyResolver | None = None,
        output_console: Console | None = None,
    ):
        self.config = config
        self.project_root = project_root or Path(".")
        self.resolver = resolver or DependencyResolver(config, self.project_root)
        self.assembler = ContextAssembler(config.translation.heading_marker)
        self.writer = FileWriter(self.project_root)
        self.console = output_console or console

    def _echo(self, text: str) -> None:
        self.console.print(text, end="", markup=False, highlight=False, soft_wrap=True)

    def prepare(self, focal: str) -> tuple[ResolutionResult, ContextDocument, str]:
        """
        Resolve the closure, assemble the context and build the system prompt,
        without any engine call.

        Returns:
            Tuple of (resolution, context document, system prompt)

        Raises:
            UnsupportedExtensionError: If the focal file is not in the pair
            MissingDependencyError: If any file of the closure is missing
            ConfigurationError: If the system prompt file cannot be read
        """
        resolution = self.resolver.require_complete(self.resolver.resolve(focal))
        document = self.assembler.assemble(resolution)
        system_prompt = build_system_prompt(self.config)
        return resolution, document, system_prompt

    def run(self, focal: str, model_key: str | None = None, dry_run: bool = False) -> PipelineResult:
        """
        Translate (or revise) the counterpart of one focal file.

        Args:
            focal: Focal file path relative to the project root
            model_key: Model selector key (defaults to llm.default_model)
            dry_run: Stop after saving the prompt transcript

        Returns:
            PipelineResult describing the run

        Raises:
            InvalidModelError, UnsupportedExtensionError, MissingDependencyError,
            ConfigurationError: before any engine call
            CredentialError, EngineInvocationError: from the engine step
        """
        model_key = model_key or self.config.llm.default_model
        entry = resolve_model(model_key, self.config.llm)

        resolution, document, system_prompt = self.prepare(focal)
        prompt = document.to_prompt()
        prompt_log = save_prompt_log(prompt, self.config.translation.history_dir, model_key)

        result = PipelineResult(
            focal=resolution.focal.path,
            counterpart=resolution.counterpart.path,
            engine_key=model_key,
            resolution=resolution,
            document=document,
            system_prompt=system_prompt,
            prompt_log=prompt_log,
        )
        if dry_run:
            logger.info("Dry run: skipping engine call")
            return result

        engine = create_engine(entry, self.config.llm)
        on_text = self._echo if self.config.llm.stream else None
        response, _ = engine.ask(
            Conversation(),
            prompt,
            system=system_prompt,
            on_text=on_text,
        )
        if on_text:
            self.console.print()

        tags = [language.tag for language in self.config.languages]
        records = parse_response(response, tags, self.config.translation.heading_marker)
        report = self.writer.write(records, resolution.target_language.extension)

        result.response = response
        result.records = records
        result.report = report
        return result
