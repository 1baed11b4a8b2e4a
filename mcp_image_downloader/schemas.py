"""
Request models for the image tools.

Arguments arrive as an untyped mapping. They are parsed once, at the dispatch
boundary, into frozen models; handlers only ever see validated requests.
Strict mode means no coercion: ``"100"`` is not a width and ``True`` is not a
quality.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ImageRequest(BaseModel):
    model_config = ConfigDict(strict=True, frozen=True, extra="ignore", populate_by_name=True)


class DownloadImageRequest(ImageRequest):
    url: str = Field(min_length=1)
    output_path: str = Field(alias="outputPath", min_length=1)


class OptimizeImageRequest(ImageRequest):
    input_path: str = Field(alias="inputPath", min_length=1)
    output_path: str = Field(alias="outputPath", min_length=1)
    width: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    height: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    quality: Optional[float] = Field(default=None, ge=1, le=100, allow_inf_nan=False)

    @property
    def wants_resize(self) -> bool:
        return self.width is not None or self.height is not None


RequestT = TypeVar("RequestT", bound=ImageRequest)


class ArgumentValidationError(ValueError):
    """Raised when a tool's arguments do not match its request model."""

    def __init__(self, tool_name: str, errors: List[Dict[str, str]]) -> None:
        self.tool_name = tool_name
        self.errors = errors
        fields = ", ".join(e["field"] for e in errors) or "arguments"
        super().__init__(f"Invalid arguments for {tool_name}: {fields}")


def _field_errors(exc: ValidationError) -> List[Dict[str, str]]:
    out: List[Dict[str, str]] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        out.append({"field": loc or "arguments", "message": err.get("msg", "invalid value")})
    return out


def parse_arguments(
    tool_name: str,
    model: Type[RequestT],
    arguments: Optional[Mapping[str, Any]],
) -> RequestT:
    try:
        return model.model_validate(dict(arguments) if arguments is not None else {})
    except ValidationError as exc:
        raise ArgumentValidationError(tool_name, _field_errors(exc)) from exc
    except (TypeError, ValueError) as exc:
        # arguments was not a mapping at all
        raise ArgumentValidationError(
            tool_name, [{"field": "arguments", "message": str(exc)}]
        ) from exc
