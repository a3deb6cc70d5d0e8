from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from .rules import DEFAULT_COLUMN_DELIMITER, DEFAULT_LINE_DELIMITER

Scalar = Union[None, bool, int, float, str]


class WriterOptions(BaseModel):
    column_delimiter: str = DEFAULT_COLUMN_DELIMITER
    line_delimiter: str = DEFAULT_LINE_DELIMITER
    enclosure: Literal["all", "none"] = "all"
    source_encoding: Optional[str] = Field(default=None, examples=["ISO-8859-1"])
    target_encoding: Optional[str] = Field(default=None, examples=["UTF-8"])

    @model_validator(mode="after")
    def encodings_come_in_pairs(self) -> "WriterOptions":
        if (self.source_encoding is None) != (self.target_encoding is None):
            raise ValueError("source_encoding and target_encoding must be set together")
        return self


class RenderRequest(BaseModel):
    rows: List[List[Scalar]] = Field(default_factory=list)
    options: WriterOptions = Field(default_factory=WriterOptions)


class RenderedCsv(BaseModel):
    sha256: str
    encoding: str = Field(default="utf-8")
    rows: int = 0
    content_b64: str


class RenderResponse(BaseModel):
    rendered_csv: RenderedCsv
    report: Dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    ok: bool = True
