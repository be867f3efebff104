"""Per-field binding metadata and record introspection.

A field binding pairs a record field with its serialization name (the pydantic
``alias``, falling back to the attribute name) and, optionally, the name of an
environment variable that overrides it.  Environment names are declared with a
tag string stored in the field's ``json_schema_extra`` under the ``"hydra"``
key::

    class Settings(BaseModel):
        port: int = hydra_field(8080, env="PORT")
        token: str = Field("", json_schema_extra={"hydra": "env=TOKEN;secret"})

The tag is a semicolon separated list of entries, each either a bare flag or a
``key=value`` pair.  Only ``env`` is interpreted here; unknown keys are left for
other consumers of the same channel.  Callers that prefer not to annotate their
models can supply a binding table mapping dotted field paths to environment
names instead; table entries win over inline tags.
"""

from __future__ import annotations

import types
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Union, get_args, get_origin

from pydantic import BaseModel, Field
from pydantic.fields import FieldInfo

from .utils.errors import DestinationTypeError

__all__ = [
    "TAG_KEY",
    "FieldBinding",
    "assign",
    "describe_bindings",
    "ensure_record",
    "env_name",
    "field_tag",
    "get_tag",
    "hydra_field",
    "model_type",
    "parse_tag",
    "serialization_name",
    "unwrap_optional",
]

TAG_KEY = "hydra"


@dataclass(slots=True, frozen=True)
class FieldBinding:
    """Resolved binding for one leaf field of a record type."""

    path: str
    serialization_name: str
    env: str | None = None


# ---------------------------------------------------------------------------
# Tag syntax
# ---------------------------------------------------------------------------


def parse_tag(tag: str) -> dict[str, str]:
    """Split ``tag`` into a mapping of entry keys to values.

    Bare flags map to an empty string.  When a key repeats, the first entry
    wins.
    """

    entries: dict[str, str] = {}
    for raw in tag.split(";"):
        entry = raw.strip()
        if not entry:
            continue
        key, sep, value = entry.partition("=")
        entries.setdefault(key.strip(), value.strip() if sep else "")
    return entries


def get_tag(tag: str, key: str) -> tuple[str, bool]:
    """Return ``(value, present)`` for ``key`` in ``tag``."""

    entries = parse_tag(tag)
    if key in entries:
        return entries[key], True
    return "", False


def hydra_field(
    default: Any = ...,
    *,
    env: str | None = None,
    tag: str | None = None,
    **kwargs: Any,
) -> Any:
    """Declare a pydantic field carrying a binding tag.

    Parameters
    ----------
    default:
        Field default, as for :func:`pydantic.Field`; ``...`` marks it required.
    env:
        Environment variable overriding the field.  Prepended to ``tag`` as an
        ``env=`` entry.
    tag:
        Additional raw tag entries.
    **kwargs:
        Forwarded to :func:`pydantic.Field` (``alias``, ``default_factory``,
        constraints, ...).
    """

    parts = [f"env={env}"] if env else []
    if tag:
        parts.append(tag)
    extra = dict(kwargs.pop("json_schema_extra", None) or {})
    if parts:
        extra[TAG_KEY] = ";".join(parts)
    if "default_factory" in kwargs:
        return Field(json_schema_extra=extra or None, **kwargs)
    return Field(default, json_schema_extra=extra or None, **kwargs)


def field_tag(field: FieldInfo) -> str:
    """Return the raw binding tag declared on ``field`` or an empty string."""

    extra = field.json_schema_extra
    if isinstance(extra, Mapping):
        value = extra.get(TAG_KEY)
        if isinstance(value, str):
            return value
    return ""


def env_name(path: str, field: FieldInfo, bindings: Mapping[str, str] | None = None) -> str | None:
    """Return the environment variable bound to the field at ``path``."""

    if bindings and path in bindings:
        return bindings[path] or None
    value, present = get_tag(field_tag(field), "env")
    return value if present and value else None


def serialization_name(name: str, field: FieldInfo) -> str:
    return field.alias or name


# ---------------------------------------------------------------------------
# Type introspection
# ---------------------------------------------------------------------------


def unwrap_optional(annotation: Any) -> Any:
    """Strip ``Annotated`` wrappers and a ``None`` member from ``annotation``."""

    origin = get_origin(annotation)
    if origin is Annotated:
        return unwrap_optional(get_args(annotation)[0])
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return unwrap_optional(members[0])
    return annotation


def model_type(annotation: Any) -> type[BaseModel] | None:
    """Return the record type behind ``annotation`` if it is a nested model."""

    target = unwrap_optional(annotation)
    if get_origin(target) is None and isinstance(target, type) and issubclass(target, BaseModel):
        return target
    return None


def ensure_record(dst: Any) -> None:
    """Raise :class:`DestinationTypeError` unless ``dst`` is a mutable model instance."""

    if not isinstance(dst, BaseModel):
        kind = f"class {dst.__name__}" if isinstance(dst, type) else type(dst).__name__
        raise DestinationTypeError(
            f"destination must be a pydantic model instance. received: {kind}"
        )
    if type(dst).model_config.get("frozen"):
        raise DestinationTypeError(
            f"destination must be mutable. received frozen model: {type(dst).__name__}"
        )


def assign(dst: BaseModel, name: str, value: Any, path: str) -> None:
    """Set field ``name`` of ``dst``, refusing frozen records and fields."""

    if type(dst).model_config.get("frozen") or type(dst).model_fields[name].frozen:
        raise DestinationTypeError(f"field '{path}' is frozen and cannot be populated")
    setattr(dst, name, value)


def describe_bindings(
    model: type[BaseModel],
    bindings: Mapping[str, str] | None = None,
    *,
    prefix: str = "",
    _stack: frozenset[type[BaseModel]] = frozenset(),
) -> list[FieldBinding]:
    """Flatten the leaf bindings of ``model`` in declaration order.

    Nested records are expanded into dotted paths; their own entry is not
    listed.  A record type already being expanded higher up (a
    self-referential model) is not expanded again.
    """

    stack = _stack | {model}
    result: list[FieldBinding] = []
    for name, field in model.model_fields.items():
        path = f"{prefix}{name}"
        nested = model_type(field.annotation)
        if nested is not None:
            if nested not in stack:
                result.extend(
                    describe_bindings(nested, bindings, prefix=f"{path}.", _stack=stack)
                )
            continue
        result.append(
            FieldBinding(
                path=path,
                serialization_name=serialization_name(name, field),
                env=env_name(path, field, bindings),
            )
        )
    return result
