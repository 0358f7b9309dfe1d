"""
File writer for parsed engine responses.

Only records in the expected output language are persisted; anything else the
engine echoes back (e.g. the focal source file) is dropped.
"""

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from pairmorph.config.models import ResponseRecord

logger = logging.getLogger(__name__)


class WriteError(Exception):
    """Raised (and collected) when a single output file cannot be written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write {path}: {reason}")


class WriteReport(BaseModel):
    """Outcome of one write batch."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    written: list[Path] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failures: list[WriteError] = Field(default_factory=list)

    @property
    def nothing_written(self) -> bool:
        return not self.written


class FileWriter:
    """Persists response records under a project root."""

    def __init__(self, project_root: Path | None = None):
        self.project_root = project_root or Path(".")

    def write(self, records: list[ResponseRecord], expected_extension: str) -> WriteReport:
        """
        Write every record whose path has the expected extension.

        Existing files are overwritten. A failure on one file is recorded and
        the remaining records are still written. Paths that resolve outside
        the project root are recorded as failures and never written.

        Args:
            records: Parsed response records
            expected_extension: Extension of the counterpart language (e.g., '.kind')

        Returns:
            WriteReport with written paths, skipped record paths and failures
        """
        report = WriteReport()
        root = self.project_root.resolve()

        for record in records:
            if Path(record.path).suffix != expected_extension:
                logger.debug(f"Skipping {record.path} (not {expected_extension})")
                report.skipped.append(record.path)
                continue

            out_path = (self.project_root / record.path).resolve()
            if not out_path.is_relative_to(root):
                error = WriteError(record.path, f"outside the project root {root}")
                logger.error(str(error))
                report.failures.append(error)
                continue

            try:
                out_path.parent.mkdir(parents=True, exist_ok=True)
                out_path.write_text(record.content, encoding="utf-8")
            except OSError as e:
                error = WriteError(record.path, str(e))
                logger.error(str(error))
                report.failures.append(error)
                continue

            logger.info(f"Saved: {record.path}")
            report.written.append(out_path)

        if report.nothing_written and not report.failures:
            logger.warning(f"No {expected_extension} file found in the response; nothing written")

        return report
