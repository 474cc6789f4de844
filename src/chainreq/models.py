"""Value containers used to build requests."""

from __future__ import annotations

import os
from typing import Any, Mapping

import httpx
from pydantic import BaseModel, ConfigDict, Field, JsonValue, TypeAdapter

_json_value = TypeAdapter(JsonValue)


class Value(dict[str, str]):
    """String to string mapping for query params, headers, form fields and cookies."""

    def get(self, key: str, default: str = "") -> str:  # type: ignore[override]
        return super().get(key, default)

    def set(self, key: str, value: str) -> None:
        self[key] = value

    def delete(self, key: str) -> None:
        self.pop(key, None)

    def encode(self) -> str:
        """Return the percent-escaped ``k=v&...`` form, sorted by key."""
        return str(httpx.QueryParams(sorted(self.items())))

    @classmethod
    def parse(cls, query: str) -> "Value":
        params = httpx.QueryParams(query.lstrip("?"))
        return cls({key: params[key] for key in params.keys()})


class Data(dict[str, JsonValue]):
    """String keyed JSON payload. Values must be JSON-representable."""

    def __init__(self, data: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        super().__init__()
        for key, value in {**(data or {}), **kwargs}.items():
            self.set(key, value)

    def get(self, key: str, default: JsonValue = None) -> JsonValue:  # type: ignore[override]
        return super().get(key, default)

    def set(self, key: str, value: Any) -> None:
        try:
            self[key] = _json_value.validate_python(value)
        except Exception as exc:
            raise ValueError(f"value of {key!r} is not JSON-representable") from exc

    def delete(self, key: str) -> None:
        self.pop(key, None)


class File(BaseModel):
    """A file upload: form field name, optional file name override and local path."""

    model_config = ConfigDict(frozen=True)

    fieldname: str = ""
    filename: str = ""
    filepath: str = Field(default="", exclude=True)

    def __str__(self) -> str:
        return self.model_dump_json(exclude_defaults=True)

    @property
    def upload_name(self) -> str:
        return self.filename or os.path.basename(self.filepath)

    def validate_path(self) -> None:
        """Raise ``OSError`` unless ``filepath`` names a readable regular file."""
        if not self.filepath:
            raise FileNotFoundError("empty file path")
        if os.path.isdir(self.filepath):
            raise IsADirectoryError(f"{self.filepath} is a directory")
        if not os.path.isfile(self.filepath):
            raise FileNotFoundError(f"{self.filepath} does not exist")
        if not os.access(self.filepath, os.R_OK):
            raise PermissionError(f"{self.filepath} is not readable")
