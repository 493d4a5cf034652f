from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

SOURCE_TYPES = ("pdf", "doc", "docx", "txt")


class ParsedBlock(BaseModel):
    page: int | None = None
    text: str


class ParsedDoc(BaseModel):
    doc_id: str
    source_type: str
    file_name: str
    text: str
    blocks: list[ParsedBlock] = Field(default_factory=list)
    parsing_warnings: list[str] = Field(default_factory=list)

    @field_validator("source_type")
    @classmethod
    def _validate_source_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in SOURCE_TYPES:
            raise ValueError(f"source_type must be one of: {', '.join(SOURCE_TYPES)}")
        return normalized
