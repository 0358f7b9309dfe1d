"""
Prompt transcripts.

The final prompt of every run is saved to a timestamped log file so a
translation can be audited or replayed by hand.
"""

import logging
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)


def transcript_path(history_dir: Path, model_key: str, now: datetime | None = None) -> Path:
    """<history_dir>/<YYYY-MM-DDTHH-MM-SS>_<model_key>.log"""
    timestamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    return history_dir.expanduser() / f"{timestamp}_{model_key}.log"


def save_prompt_log(
    prompt: str, history_dir: Path, model_key: str, now: datetime | None = None
) -> Path:
    """
    Persist the prompt sent to the engine.

    Args:
        prompt: The full user prompt
        history_dir: Log directory (created if needed)
        model_key: Selector key of the model, part of the file name
        now: Timestamp override

    Returns:
        Path of the written log file
    """
    log_file = transcript_path(history_dir, model_key, now)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    log_file.write_text(prompt, encoding="utf-8")
    logger.info(f"Saved prompt log: {log_file}")
    return log_file
