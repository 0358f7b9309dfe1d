"""
Engine response parser.

Splits the engine's free text into file records. Each record starts with a
heading line (`# path/to/File.kind`) and takes its content from the fenced
code block that follows:

    # Base/Bool/and.kind

    ```kind
    <file content>
    ```

The parser is a three-state machine fed one line at a time.
"""

from enum import Enum

from pairmorph.config.models import ResponseRecord

FENCE = "```"

_STATUS_LABELS = (" (draft)", " (missing)")


class ParserState(str, Enum):
    """Position of the parser relative to records and code blocks."""

    OUTSIDE_RECORD = "outside_record"
    IN_RECORD_OUTSIDE_CODE = "in_record_outside_code"
    IN_RECORD_IN_CODE = "in_record_in_code"


class ResponseParser:
    """
    Incremental parser for heading + fenced-block responses.

    Transitions:
    - any state + heading: flush the open record, open a new one
    - IN_RECORD_OUTSIDE_CODE + fence-open(tag): start capturing
    - IN_RECORD_IN_CODE + fence-close: stop capturing, trim trailing whitespace
    - IN_RECORD_IN_CODE + other line: append verbatim

    Lines outside code blocks that are neither headings nor fence-opens with
    a recognized tag are ignored. A record that never enters a code block is
    still emitted, with empty content.
    """

    def __init__(self, language_tags: list[str], heading_marker: str = "# "):
        self.language_tags = list(language_tags)
        self.heading_marker = heading_marker
        self.state = ParserState.OUTSIDE_RECORD
        self.records: list[ResponseRecord] = []
        self._path: str | None = None
        self._language: str | None = None
        self._content: str = ""
        self._lines: list[str] = []

    # =========================================================================
    # Line classification
    # =========================================================================

    def is_heading(self, line: str) -> bool:
        return line.startswith(self.heading_marker) and bool(line[len(self.heading_marker):].strip())

    def heading_path(self, line: str) -> str:
        path = line[len(self.heading_marker):].strip()
        for label in _STATUS_LABELS:
            if path.endswith(label):
                return path[: -len(label)].rstrip()
        return path

    def fence_open_tag(self, line: str) -> str | None:
        """Return the tag if the line opens a block in a recognized language."""
        stripped = line.strip()
        if not stripped.startswith(FENCE):
            return None
        tag = stripped[len(FENCE):].strip()
        return tag if tag in self.language_tags else None

    @staticmethod
    def is_fence_close(line: str) -> bool:
        return line.strip() == FENCE

    # =========================================================================
    # State machine
    # =========================================================================

    def feed(self, line: str) -> None:
        """Consume one line (without its trailing newline)."""
        if self.is_heading(line):
            self._flush()
            self._path = self.heading_path(line)
            self._language = None
            self._content = ""
            self.state = ParserState.IN_RECORD_OUTSIDE_CODE
            return

        if self.state == ParserState.IN_RECORD_OUTSIDE_CODE:
            tag = self.fence_open_tag(line)
            if tag is not None:
                self._language = tag
                self._lines = []
                self.state = ParserState.IN_RECORD_IN_CODE
        elif self.state == ParserState.IN_RECORD_IN_CODE:
            if self.is_fence_close(line):
                self._content = "\n".join(self._lines).rstrip()
                self._lines = []
                self.state = ParserState.IN_RECORD_OUTSIDE_CODE
            else:
                self._lines.append(line)

    def finish(self) -> list[ResponseRecord]:
        """Flush any open record and return everything parsed so far."""
        self._flush()
        return list(self.records)

    def _flush(self) -> None:
        if self._path is None:
            return
        if self.state == ParserState.IN_RECORD_IN_CODE:
            # Unterminated block: keep what was captured
            self._content = "\n".join(self._lines).rstrip()
        self.records.append(
            ResponseRecord(path=self._path, language=self._language, content=self._content)
        )
        self._path = None
        self._language = None
        self._content = ""
        self._lines = []
        self.state = ParserState.OUTSIDE_RECORD


def parse_response(
    response: str, language_tags: list[str], heading_marker: str = "# "
) -> list[ResponseRecord]:
    """Parse a complete engine response into file records."""
    parser = ResponseParser(language_tags, heading_marker)
    for line in response.splitlines():
        parser.feed(line)
    return parser.finish()
