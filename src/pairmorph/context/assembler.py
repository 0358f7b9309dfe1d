"""
Context assembler.

Turns a resolved closure into the ordered document sent to the engine: every
dependency pair (source then counterpart), then the focal file, then exactly
one trailing counterpart block marked as draft or missing.
"""

from pydantic import BaseModel, Field

from pairmorph.config.models import BlockStatus, ContextBlock, ResolutionResult

MISSING_PLACEHOLDER = "..."

PROMPT_SUFFIX = "\n\nGenerate or update the file marked as (missing) or (draft) now:"


class ContextDocument(BaseModel):
    """Ordered prompt context for one engine call."""

    blocks: list[ContextBlock] = Field(default_factory=list)
    heading_marker: str = "# "

    @property
    def focal_block(self) -> ContextBlock:
        return self.blocks[-2]

    @property
    def request_block(self) -> ContextBlock:
        """The single draft/missing block the engine must produce."""
        return self.blocks[-1]

    def render_block(self, block: ContextBlock) -> str:
        label = "" if block.status == BlockStatus.PLAIN else f" ({block.status.value})"
        return (
            f"{self.heading_marker}{block.path}{label}\n\n"
            f"```{block.language}\n{block.content}\n```\n\n"
        )

    def render(self) -> str:
        return "".join(self.render_block(block) for block in self.blocks)

    def to_prompt(self) -> str:
        """Rendered context followed by the generation request."""
        return f"{self.render()}{PROMPT_SUFFIX}"


class ContextAssembler:
    """Builds ContextDocuments from resolution results."""

    def __init__(self, heading_marker: str = "# "):
        self.heading_marker = heading_marker

    def assemble(self, resolution: ResolutionResult) -> ContextDocument:
        """
        Assemble the context for a complete resolution.

        Args:
            resolution: Output of DependencyResolver.resolve(); must be complete

        Returns:
            ContextDocument ending with the focal file and its draft/missing counterpart
        """
        if not resolution.is_complete:
            raise ValueError("Cannot assemble context for an incomplete dependency closure")

        source_tag = resolution.source_language.tag
        target_tag = resolution.target_language.tag
        blocks: list[ContextBlock] = []

        for pair in resolution.pairs:
            blocks.append(
                ContextBlock(path=pair.source.path, language=source_tag, content=pair.source.content or "")
            )
            blocks.append(
                ContextBlock(path=pair.target.path, language=target_tag, content=pair.target.content or "")
            )

        focal = resolution.focal
        blocks.append(ContextBlock(path=focal.path, language=source_tag, content=focal.content or ""))

        counterpart = resolution.counterpart
        if counterpart.exists:
            blocks.append(
                ContextBlock(
                    path=counterpart.path,
                    language=target_tag,
                    content=counterpart.content or "",
                    status=BlockStatus.DRAFT,
                )
            )
        else:
            blocks.append(
                ContextBlock(
                    path=counterpart.path,
                    language=target_tag,
                    content=MISSING_PLACEHOLDER,
                    status=BlockStatus.MISSING,
                )
            )

        return ContextDocument(blocks=blocks, heading_marker=self.heading_marker)
