"""Chunk and structural element models."""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.enums import ElementType


class StructuralElement(BaseModel):
    """Typed span of a source document (heading, paragraph, table...)."""

    type: ElementType = ElementType.PARAGRAPH
    content: str

    model_config = ConfigDict(frozen=True)


class Chunk(BaseModel):
    """Bounded span of source text processed as one unit of work."""

    index: int = Field(..., ge=0)
    text: str
    token_estimate: int = Field(..., ge=0)
    has_overlap: bool = False
    elements: tuple[StructuralElement, ...] = ()

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_overlap_flag(self) -> "Chunk":
        """Only chunks after the first can carry overlap."""
        if self.has_overlap and self.index == 0:
            raise ValueError("first chunk cannot carry overlap")
        return self
