"""Pydantic models and dataclasses for request/response types."""
from __future__ import annotations
import base64
import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

@dataclass(frozen=True)
class MediaFile:
    """Auxiliary asset (image, font, data file) sent alongside the template."""
    name: str
    data: bytes

@dataclass
class ResponseInfo:
    """Diagnostics for one gateway exchange, available on success and failure."""
    correlation_id: str = ""
    stdout: str = ""
    stderr: str = ""

class GenerationRequest(BaseModel):
    """JSON body posted to the gateway."""
    content: str = ""
    template: str
    options: list[str] = Field(default_factory=list)
    media: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def build(
        cls,
        content: str,
        template_data: bytes,
        options: list[str] | None = None,
        media: list[MediaFile] | None = None,
    ) -> "GenerationRequest":
        """
        Encode template and media payloads and assemble the request.

        Args:
            content: Optional content string passed through to the renderer.
            template_data: Raw template bytes.
            options: Renderer CLI options, forwarded in order.
            media: Assets keyed by file name; a repeated name keeps the last entry.
        """
        encoded = {m.name: _b64(m.data) for m in media or []}
        return cls(
            content=content,
            template=_b64(template_data),
            options=list(options or []),
            media=encoded,
        )

class GenerationResponse(BaseModel):
    """JSON body returned by the gateway."""
    error: bool = False
    message: str = ""
    pdf: str = ""
    stdout: str = ""
    stderr: str = ""

    @field_validator("error", "message", "pdf", "stdout", "stderr", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        # explicit nulls mean the field is absent
        if value is None:
            return False if info.field_name == "error" else ""
        return value

    @classmethod
    def parse(cls, body: bytes) -> "GenerationResponse":
        """Strict parse. A literal JSON null decodes to an empty response."""
        if body.strip() == b"null":
            return cls()
        return cls.model_validate_json(body)

    @classmethod
    def salvage(cls, body: bytes) -> "GenerationResponse":
        """
        Lenient parse for diagnostics: keep every field that validates, drop the rest.

        Never raises; a body that is not a JSON object yields an empty response.
        """
        try:
            data = json.loads(body) if body else None
        except ValueError:
            return cls()
        if not isinstance(data, dict):
            return cls()
        kept = {}
        for name in cls.model_fields:
            if name not in data:
                continue
            try:
                cls.model_validate({name: data[name]})
            except ValidationError:
                continue
            kept[name] = data[name]
        return cls.model_validate(kept)

def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
