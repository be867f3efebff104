"""Overlay environment variables onto a populated record.

The overlay walks the record's fields in declaration order.  Nested records
are always descended into, whether or not they carry a binding themselves.
Leaf fields bound to an environment variable are overwritten when that
variable is set to a non-empty string; unset and empty variables are treated
alike and leave the field alone.

Values are converted from text according to the field's declared type:

=====================  ==============================================
Field type             Accepted text
=====================  ==============================================
``str``                anything, verbatim
``Path``/``SecretStr`` anything, wrapped verbatim
``int``                ``[+-]digits`` within the signed 64-bit range
``float``              decimal or exponent notation, ``inf``, ``nan``
``bool``               ``1 t true`` / ``0 f false``, any case
=====================  ==============================================

``Optional[X]`` is treated as ``X``.  Any other type raises
:class:`UnsupportedTypeError` rather than being stringified.  The overlay does
not run pydantic validation; constraints are checked by the loader's optional
post-load validation.
"""

from __future__ import annotations

import math
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, SecretStr

from .fields import assign, ensure_record, env_name, model_type, unwrap_optional
from .utils.errors import ConversionError, UnsupportedTypeError
from .utils.logging import get_logger

__all__ = ["apply_env", "coerce"]

logger = get_logger(__name__)

_INT_RE: Final = re.compile(r"[+-]?[0-9]+")
_INT64_MIN: Final = -(2**63)
_INT64_MAX: Final = 2**63 - 1
_TRUE: Final = frozenset({"1", "t", "true"})
_FALSE: Final = frozenset({"0", "f", "false"})
_INFINITIES: Final = frozenset({"inf", "+inf", "-inf", "infinity", "+infinity", "-infinity"})
_TEXTUAL: Final = (str, Path, SecretStr)


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


def _parse_int(text: str, field: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ConversionError(f"field '{field}': invalid integer {text!r}")
    value = int(text, 10)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ConversionError(f"field '{field}': integer {text!r} out of range")
    return value


def _parse_float(text: str, field: str) -> float:
    if text != text.strip() or "_" in text:
        raise ConversionError(f"field '{field}': invalid float {text!r}")
    try:
        value = float(text)
    except ValueError:
        raise ConversionError(f"field '{field}': invalid float {text!r}") from None
    if math.isinf(value) and text.lower() not in _INFINITIES:
        raise ConversionError(f"field '{field}': float {text!r} out of range")
    return value


def _parse_bool(text: str, field: str) -> bool:
    lowered = text.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConversionError(f"field '{field}': invalid boolean {text!r}")


def coerce(text: str, annotation: Any, *, field: str = "<value>") -> Any:
    """Convert environment ``text`` to the type described by ``annotation``.

    Raises
    ------
    ConversionError
        If ``text`` is not a valid literal for the target type.
    UnsupportedTypeError
        If the target type has no text conversion.
    """

    target = unwrap_optional(annotation)
    if target is bool:
        return _parse_bool(text, field)
    if target is int:
        return _parse_int(text, field)
    if target is float:
        return _parse_float(text, field)
    if target in _TEXTUAL:
        return target(text)
    raise UnsupportedTypeError(
        f"field '{field}': cannot set a value of type {annotation!r} from the environment"
    )


# ---------------------------------------------------------------------------
# Overlay
# ---------------------------------------------------------------------------


def apply_env(
    dst: BaseModel,
    *,
    env: Mapping[str, str] | None = None,
    bindings: Mapping[str, str] | None = None,
) -> None:
    """Overwrite bound fields of ``dst`` with values from the environment.

    Parameters
    ----------
    dst:
        Record to update in place.
    env:
        Environment to read; defaults to :data:`os.environ`.
    bindings:
        Optional table of dotted field paths to variable names, taking
        precedence over tags declared on the fields.
    """

    ensure_record(dst)
    environ = os.environ if env is None else env
    _overlay(dst, environ, bindings or {}, "")


def _overlay(
    dst: BaseModel,
    environ: Mapping[str, str],
    bindings: Mapping[str, str],
    prefix: str,
) -> None:
    for name, field in type(dst).model_fields.items():
        path = f"{prefix}{name}"
        if model_type(field.annotation) is not None:
            current = getattr(dst, name, None)
            if isinstance(current, BaseModel):
                _overlay(current, environ, bindings, f"{path}.")
            continue
        key = env_name(path, field, bindings)
        if key is None:
            continue
        text = environ.get(key, "")
        if not text:
            continue
        assign(dst, name, coerce(text, field.annotation, field=path), path)
        logger.debug("field %s set from $%s", path, key)
