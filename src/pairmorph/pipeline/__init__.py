"""
Single-file translation pipeline.

Resolves the paired dependency closure of a focal file, assembles the engine
context, calls the engine once, parses its reply and writes the counterpart.
"""

from pairmorph.pipeline.orchestrator import PipelineResult, TranslationPipeline

__all__ = [
    "PipelineResult",
    "TranslationPipeline",
]
