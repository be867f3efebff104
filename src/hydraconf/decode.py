"""Decode a YAML document into an existing record in place.

Document keys are matched against field serialization names.  Unknown keys are
ignored and absent keys leave the field untouched, so values already on the
record survive.  A mapping under a nested record field is decoded into the
record that is already there.  Every other value is validated against the
field's declared type, constraints included, before it is assigned.  Value
validation inherits the record's string and strictness settings
(``strict``, ``str_strip_whitespace`` and similar) from its ``model_config``.

YAML numbers and booleans under a ``str`` field are stored as their text
(``true``/``false`` for booleans) unless the record is strict.  Field and
model validators do not run here; the loader's post-load validation covers
them.

Mutation is not atomic: fields decoded before a failing one keep their new
values.
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from functools import lru_cache
from typing import Annotated, Any

import pydantic
import yaml
from pydantic import BaseModel, ConfigDict, TypeAdapter
from pydantic.fields import FieldInfo

from .fields import assign, ensure_record, model_type, serialization_name, unwrap_optional
from .utils.errors import DecodeError, FilesystemError
from .utils.logging import get_logger

__all__ = ["decode_into", "read_and_parse", "read_document"]

logger = get_logger(__name__)

_INHERITED_CONFIG = frozenset(
    {
        "strict",
        "str_strip_whitespace",
        "str_to_lower",
        "str_to_upper",
        "str_min_length",
        "str_max_length",
        "arbitrary_types_allowed",
        "coerce_numbers_to_str",
    }
)


def read_document(path: str | os.PathLike[str]) -> Any:
    """Read ``path`` read-only and return the parsed YAML document."""

    try:
        with open(path, "rb") as fh:
            content = fh.read()
    except OSError as exc:
        raise FilesystemError(f"cannot read configuration file '{path}': {exc}") from exc
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise DecodeError(f"malformed YAML in '{path}': {exc}") from exc


def read_and_parse(path: str | os.PathLike[str], dst: BaseModel) -> None:
    """Decode the file at ``path`` into ``dst``.

    Raises
    ------
    FilesystemError
        If the file cannot be opened or read.
    DecodeError
        If the document is malformed, is not a mapping, or holds a value that
        does not fit its field.
    """

    ensure_record(dst)
    document = read_document(path)
    if document is None:
        logger.debug("%s is empty", path)
        return
    if not isinstance(document, Mapping):
        raise DecodeError(
            f"expected a mapping at the top of '{path}', found {type(document).__name__}"
        )
    decode_into(dst, document)
    logger.debug("decoded %s into %s", path, type(dst).__name__)


def decode_into(dst: BaseModel, document: Mapping[Any, Any], *, prefix: str = "") -> None:
    """Assign the values of ``document`` onto the matching fields of ``dst``."""

    by_key = {
        serialization_name(name, field): (name, field)
        for name, field in type(dst).model_fields.items()
    }
    for key, value in document.items():
        match = by_key.get(key)
        if match is None:
            continue
        name, field = match
        path = f"{prefix}{name}"
        current = getattr(dst, name, None)
        nested = model_type(field.annotation)
        if nested is not None and isinstance(value, Mapping) and isinstance(current, nested):
            decode_into(current, value, prefix=f"{path}.")
            continue
        assign(dst, name, _validate(type(dst), name, value, path), path)


@lru_cache(maxsize=None)
def _adapter(model: type[BaseModel], name: str) -> TypeAdapter[Any]:
    field = model.model_fields[name]
    annotation = field.annotation
    # Model and dataclass types carry their own config and reject an override.
    own_config = isinstance(annotation, type) and (
        issubclass(annotation, BaseModel) or dataclasses.is_dataclass(annotation)
    )
    if field.metadata:
        annotation = Annotated[(annotation, *field.metadata)]
    if own_config:
        return TypeAdapter(annotation)
    return TypeAdapter(annotation, config=_adapter_config(model))


def _adapter_config(model: type[BaseModel]) -> ConfigDict:
    return ConfigDict(**{k: v for k, v in model.model_config.items() if k in _INHERITED_CONFIG})


def _as_text(model: type[BaseModel], field: FieldInfo, value: Any) -> Any:
    if model.model_config.get("strict") or unwrap_optional(field.annotation) is not str:
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _validate(model: type[BaseModel], name: str, value: Any, path: str) -> Any:
    value = _as_text(model, model.model_fields[name], value)
    try:
        return _adapter(model, name).validate_python(value)
    except pydantic.ValidationError as exc:
        reason = exc.errors()[0]["msg"] if exc.errors() else str(exc)
        raise DecodeError(f"invalid value for field '{path}': {reason}") from exc
