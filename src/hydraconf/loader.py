"""Loader facade tying path resolution, decoding and the environment overlay.

Sources are applied in a fixed order, later ones winning:
    1. Field defaults on the destination record
    2. The first configuration file found on the search paths
    3. Environment variables bound to fields

The first error from any step is propagated unchanged and the remaining steps
are skipped.  The destination may then be partially populated.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel

from .decode import read_and_parse
from .fields import ensure_record, serialization_name
from .overlay import apply_env
from .resolve import SearchConfig, SearchPath, find_config_path
from .utils.errors import DestinationTypeError, ValidationError
from .utils.logging import get_logger

__all__ = ["Hydra", "load", "snapshot", "validate_record"]

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def snapshot(record: BaseModel) -> dict[str, Any]:
    """Return the populated fields of ``record`` keyed by serialization name.

    Nested records are expanded recursively.  Fields never assigned (e.g. on a
    record built with ``model_construct``) are omitted.
    """

    data: dict[str, Any] = {}
    for name, field in type(record).model_fields.items():
        if name not in record.__dict__:
            continue
        value = record.__dict__[name]
        if isinstance(value, BaseModel):
            value = snapshot(value)
        data[serialization_name(name, field)] = value
    return data


def validate_record(record: BaseModel) -> None:
    """Check ``record`` against its declared constraints.

    Raises
    ------
    ValidationError
        If pydantic rejects the populated values.
    """

    try:
        type(record).model_validate(snapshot(record))
    except pydantic.ValidationError as exc:
        raise ValidationError(str(exc)) from exc


class Hydra:
    """Load configuration records from a file and the environment.

    Parameters
    ----------
    config:
        Search directories and target filename.
    bindings:
        Optional table of dotted field paths to environment variable names,
        overriding tags declared on the record's fields.
    env:
        Environment to read; defaults to :data:`os.environ` at load time.
    validate:
        Re-validate the populated record through pydantic after the overlay.
    """

    def __init__(
        self,
        config: SearchConfig,
        *,
        bindings: Mapping[str, str] | None = None,
        env: Mapping[str, str] | None = None,
        validate: bool = False,
    ) -> None:
        self.config = config
        self.bindings = dict(bindings or {})
        self.env = env
        self.validate = validate

    def load(self, dst: ModelT) -> ModelT:
        """Populate ``dst`` in place and return it."""

        ensure_record(dst)
        path = find_config_path(self.config)
        if path is None:
            logger.debug("no configuration file found; using environment only")
        else:
            read_and_parse(path, dst)
        apply_env(dst, env=self.env, bindings=self.bindings)
        if self.validate:
            validate_record(dst)
        return dst

    def load_model(self, model: type[ModelT]) -> ModelT:
        """Build an unvalidated instance of ``model`` and load into it."""

        if not (isinstance(model, type) and issubclass(model, BaseModel)):
            raise DestinationTypeError(
                f"model must be a pydantic model class. received: {model!r}"
            )
        return self.load(model.model_construct())


def load(
    dst: ModelT,
    *,
    filename: str | None,
    paths: Sequence[SearchPath | str],
    bindings: Mapping[str, str] | None = None,
    env: Mapping[str, str] | None = None,
    validate: bool = False,
) -> ModelT:
    """Shortcut for ``Hydra(SearchConfig(...), ...).load(dst)``."""

    config = SearchConfig(filename=filename, paths=list(paths))
    return Hydra(config, bindings=bindings, env=env, validate=validate).load(dst)
