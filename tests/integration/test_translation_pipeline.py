"""
Integration tests for the translation pipeline.

Runs resolver, assembler, parser and writer together against a temporary
project. The engine is replaced by a fake that replays a canned reply.
"""

import io
from unittest.mock import patch

import pytest
from rich.console import Console

from pairmorph.config.loader import ConfigurationError
from pairmorph.pipeline.orchestrator import TranslationPipeline
from pairmorph.resolver.dependency_resolver import MissingDependencyError
from pairmorph.translator.llm_client import Conversation, InvalidModelError


class FakeEngine:
    """Replays a fixed reply and remembers what it was asked."""

    def __init__(self, reply: str):
        self.reply = reply
        self.prompts: list[str] = []
        self.systems: list[str | None] = []

    def ask(self, conversation, user_message, system=None, on_text=None, extend=None, shorten=None):
        self.prompts.append(user_message)
        self.systems.append(system)
        if on_text:
            on_text(self.reply)
        return self.reply, conversation.with_message("user", user_message).with_message(
            "assistant", self.reply
        )


@pytest.fixture
def quiet_console():
    return Console(file=io.StringIO(), force_terminal=False)


@pytest.fixture
def make_pipeline(pair_config, project_dir, make_resolver, quiet_console):
    def _make(closures):
        resolver, lister = make_resolver(closures)
        pipeline = TranslationPipeline(
            pair_config, project_root=project_dir, resolver=resolver, output_console=quiet_console
        )
        return pipeline, lister

    return _make


def test_end_to_end(make_pipeline, write_files, project_dir, quiet_console):
    write_files({"A.src": "module A", "B.src": "module B", "B.tgt": "B/def"})
    pipeline, _ = make_pipeline({"A.src": ["B.src"]})
    engine = FakeEngine("Here it is.\n\n# A.tgt\n\n```tgt\nbody\n```\n")

    with patch("pairmorph.pipeline.orchestrator.create_engine", return_value=engine):
        result = pipeline.run("A.src", "c")

    assert (project_dir / "A.tgt").read_text(encoding="utf-8") == "body"
    assert [p.name for p in result.report.written] == ["A.tgt"]
    assert not result.dry_run

    # one call, carrying the assembled context and the system rules
    assert len(engine.prompts) == 1
    assert engine.prompts[0] == result.document.to_prompt()
    assert "# A.tgt (missing)" in engine.prompts[0]
    assert "src <-> tgt" in engine.systems[0]

    # transcript holds exactly what was sent
    assert result.prompt_log.read_text(encoding="utf-8") == engine.prompts[0]
    assert result.prompt_log.name.endswith("_c.log")

    # the reply was streamed to the console
    assert "body" in quiet_console.file.getvalue()


def test_incomplete_closure_never_calls_engine(make_pipeline, write_files, project_dir):
    write_files({"A.src": "a", "B.src": "b", "C.src": "c", "C.tgt": "c'"})
    pipeline, _ = make_pipeline({"A.src": ["B.src", "C.src"]})

    with patch("pairmorph.pipeline.orchestrator.create_engine") as mock_create:
        with pytest.raises(MissingDependencyError) as exc_info:
            pipeline.run("A.src", "c")

    mock_create.assert_not_called()
    assert exc_info.value.paths == ["B.tgt"]
    assert not (project_dir / ".history").exists()
    assert not (project_dir / "A.tgt").exists()


def test_invalid_model_fails_before_resolution(make_pipeline, write_files):
    write_files({"A.src": "a"})
    pipeline, lister = make_pipeline({})

    with pytest.raises(InvalidModelError):
        pipeline.run("A.src", "nope")

    assert lister.calls == []


def test_dry_run_saves_prompt_only(make_pipeline, write_files, project_dir):
    write_files({"A.src": "a", "A.tgt": "old"})
    pipeline, _ = make_pipeline({})

    with patch("pairmorph.pipeline.orchestrator.create_engine") as mock_create:
        result = pipeline.run("A.src", dry_run=True)

    mock_create.assert_not_called()
    assert result.dry_run
    assert result.engine_key == "c"
    assert result.prompt_log.exists()
    assert result.document.request_block.content == "old"
    assert (project_dir / "A.tgt").read_text(encoding="utf-8") == "old"


def test_only_target_language_records_written(make_pipeline, write_files, project_dir):
    write_files({"A.src": "a"})
    pipeline, _ = make_pipeline({})
    engine = FakeEngine(
        "# A.src\n\n```src\nrewritten source\n```\n\n"
        "# A.tgt\n\n```tgt\ntarget\n```\n"
    )

    with patch("pairmorph.pipeline.orchestrator.create_engine", return_value=engine):
        result = pipeline.run("A.src", "c")

    assert len(result.records) == 2
    assert result.report.skipped == ["A.src"]
    assert (project_dir / "A.src").read_text(encoding="utf-8") == "a"
    assert (project_dir / "A.tgt").read_text(encoding="utf-8") == "target"


def test_reverse_direction(make_pipeline, write_files, project_dir):
    write_files({"A.tgt": "A/def"})
    pipeline, _ = make_pipeline({})
    engine = FakeEngine("# A.src\n```src\nmodule A\n```")

    with patch("pairmorph.pipeline.orchestrator.create_engine", return_value=engine):
        pipeline.run("A.tgt", "c")

    assert (project_dir / "A.src").read_text(encoding="utf-8") == "module A"


def test_reply_without_records_writes_nothing(make_pipeline, write_files, project_dir):
    write_files({"A.src": "a"})
    pipeline, _ = make_pipeline({})
    engine = FakeEngine("I cannot translate this file.")

    with patch("pairmorph.pipeline.orchestrator.create_engine", return_value=engine):
        result = pipeline.run("A.src", "c")

    assert result.records == []
    assert result.report.nothing_written
    assert not (project_dir / "A.tgt").exists()


def test_each_run_starts_a_fresh_conversation(make_pipeline, write_files):
    write_files({"A.src": "a"})
    pipeline, _ = make_pipeline({})
    engine = FakeEngine("# A.tgt\n```tgt\nx\n```")
    seen = []
    original_ask = engine.ask

    def recording_ask(conversation, *args, **kwargs):
        seen.append(conversation)
        return original_ask(conversation, *args, **kwargs)

    engine.ask = recording_ask
    with patch("pairmorph.pipeline.orchestrator.create_engine", return_value=engine):
        pipeline.run("A.src", "c")
        pipeline.run("A.src", "c")

    assert seen == [Conversation(), Conversation()]


def test_unreadable_rules_file_fails_before_transcript(make_pipeline, write_files, pair_config, project_dir):
    write_files({"A.src": "a"})
    pair_config.translation.system_prompt_path = project_dir / "missing-rules.md"
    pipeline, _ = make_pipeline({})

    with patch("pairmorph.pipeline.orchestrator.create_engine") as mock_create:
        with pytest.raises(ConfigurationError):
            pipeline.run("A.src", "c")

    mock_create.assert_not_called()
    assert not (project_dir / ".history").exists()
