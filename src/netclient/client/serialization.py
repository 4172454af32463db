"""JSON body encoding and response decoding.

The request executor talks to a :class:`Serializer`; :class:`JsonSerializer`
is the default and is driven by :class:`~netclient.models.SerializationConfig`.
"""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Optional, Protocol

import pydantic_core
from pydantic import BaseModel, TypeAdapter, ValidationError

from netclient.exceptions import SerializationError
from netclient.models import SerializationConfig


class Serializer(Protocol):
    """Encodes request bodies and decodes response bodies."""

    content_type: str

    def encode(self, value: Any) -> bytes: ...

    def decode(self, content: bytes, target: Any = None) -> Any: ...


def _known_keys(model: type[BaseModel]) -> set[str]:
    keys: set[str] = set()
    for name, info in model.model_fields.items():
        keys.add(name)
        if info.alias:
            keys.add(info.alias)
        if isinstance(info.validation_alias, str):
            keys.add(info.validation_alias)
    return keys


class JsonSerializer:
    """JSON serializer backed by pydantic.

    Encoding accepts pydantic models, dataclasses and plain data. Decoding
    parses JSON and, when a *target* type is given, validates the result
    into it with a :class:`~pydantic.TypeAdapter`.

    Args:
        config: Lenient decoding, unknown-key handling and pretty printing.
    """

    content_type = "application/json"

    def __init__(self, config: Optional[SerializationConfig] = None) -> None:
        self.config = config or SerializationConfig()
        self._adapters: dict[Any, TypeAdapter] = {}

    def encode(self, value: Any) -> bytes:
        """Encode *value* as JSON.

        Raises:
            SerializationError: If *value* cannot be represented as JSON.
        """
        if isinstance(value, bytes):
            return value
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            value = dataclasses.asdict(value)
        try:
            return pydantic_core.to_json(
                value, indent=2 if self.config.pretty_print else None
            )
        except pydantic_core.PydanticSerializationError as exc:
            raise SerializationError(
                f"Cannot encode {type(value).__name__} as JSON: {exc}"
            ) from exc

    def decode(self, content: bytes, target: Any = None) -> Any:
        """Decode a response body.

        Args:
            content: Raw response body.
            target: Type to validate into. ``None`` returns the parsed JSON,
                ``str`` and ``bytes`` return the body untouched.

        Returns:
            The decoded value, or ``None`` for an empty body.

        Raises:
            SerializationError: If the body is not valid JSON or does not
                fit *target*.
        """
        if target is bytes:
            return content
        if target is str:
            return content.decode("utf-8", errors="replace")
        if not content or not content.strip():
            return None

        try:
            data = json.loads(content, strict=not self.config.lenient)
        except ValueError as exc:
            raise SerializationError(f"Response body is not valid JSON: {exc}") from exc

        if target is None or target is Any:
            return data

        name = getattr(target, "__name__", repr(target))
        if (
            not self.config.ignore_unknown_keys
            and isinstance(target, type)
            and issubclass(target, BaseModel)
            and isinstance(data, dict)
        ):
            unknown = sorted(set(data) - _known_keys(target))
            if unknown:
                raise SerializationError(
                    f"Response has keys unknown to {name}: {', '.join(unknown)}"
                )

        # Strict validation runs against the raw JSON so ISO datetimes,
        # UUIDs and enum values are accepted as JSON strings.
        adapter = self._adapter(target)
        try:
            if self.config.lenient:
                return adapter.validate_python(data)
            return adapter.validate_json(content, strict=True)
        except ValidationError as exc:
            raise SerializationError(
                f"Response does not match {name}: "
                f"{exc.error_count()} validation error(s)\n{exc}"
            ) from exc

    def _adapter(self, target: Any) -> TypeAdapter:
        adapter = self._adapters.get(target)
        if adapter is None:
            adapter = TypeAdapter(target)
            self._adapters[target] = adapter
        return adapter
