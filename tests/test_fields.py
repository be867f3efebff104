"""Tests for binding tags and record introspection."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import pytest
from pydantic import BaseModel, ConfigDict, Field

from hydraconf import DestinationTypeError, FieldBinding, describe_bindings, get_tag, hydra_field, parse_tag
from hydraconf.fields import ensure_record, field_tag, model_type, unwrap_optional


class Inner(BaseModel):
    leaf: str = hydra_field("", env="LEAF")


class Outer(BaseModel):
    port: int = hydra_field(8080, env="PORT", alias="listen_port")
    name: str = Field("svc", json_schema_extra={"hydra": "secret;env=NAME"})
    plain: float = 0.0
    inner: Inner = Field(default_factory=Inner)


def test_parse_tag_flags_and_pairs() -> None:
    assert parse_tag("env=PORT;secret;unit=ms") == {"env": "PORT", "secret": "", "unit": "ms"}


def test_parse_tag_ignores_empty_entries_and_keeps_first() -> None:
    assert parse_tag(";env=A;;env=B;") == {"env": "A"}


def test_parse_tag_splits_on_first_equals() -> None:
    assert parse_tag("env=A=B") == {"env": "A=B"}


def test_get_tag() -> None:
    assert get_tag("env=PORT;secret", "env") == ("PORT", True)
    assert get_tag("env=PORT;secret", "secret") == ("", True)
    assert get_tag("env=PORT", "missing") == ("", False)
    assert get_tag("", "env") == ("", False)


def test_hydra_field_writes_tag() -> None:
    field = Outer.model_fields["port"]
    assert field.alias == "listen_port"
    assert field_tag(field) == "env=PORT"
    assert field_tag(Outer.model_fields["plain"]) == ""


def test_hydra_field_combines_env_and_raw_tag() -> None:
    class Model(BaseModel):
        value: int = hydra_field(1, env="VALUE", tag="secret")

    assert field_tag(Model.model_fields["value"]) == "env=VALUE;secret"


def test_hydra_field_required_by_default() -> None:
    class Model(BaseModel):
        value: int = hydra_field(env="VALUE")

    assert Model.model_fields["value"].is_required()


def test_describe_bindings_flattens_nested_records() -> None:
    assert describe_bindings(Outer) == [
        FieldBinding(path="port", serialization_name="listen_port", env="PORT"),
        FieldBinding(path="name", serialization_name="name", env="NAME"),
        FieldBinding(path="plain", serialization_name="plain", env=None),
        FieldBinding(path="inner.leaf", serialization_name="leaf", env="LEAF"),
    ]


def test_binding_table_overrides_tags() -> None:
    bindings = {"plain": "PLAIN", "inner.leaf": "OTHER_LEAF", "port": ""}
    by_path = {b.path: b.env for b in describe_bindings(Outer, bindings)}
    assert by_path["plain"] == "PLAIN"
    assert by_path["inner.leaf"] == "OTHER_LEAF"
    assert by_path["port"] is None
    assert by_path["name"] == "NAME"


def test_unwrap_optional() -> None:
    assert unwrap_optional(Optional[int]) is int
    assert unwrap_optional(int | None) is int
    assert unwrap_optional(Annotated[Path, "meta"]) is Path
    assert unwrap_optional(int | str) == int | str


def test_model_type() -> None:
    assert model_type(Inner) is Inner
    assert model_type(Optional[Inner]) is Inner
    assert model_type(int) is None
    assert model_type(list[Inner]) is None


@pytest.mark.parametrize("value", [1, "text", None, {"a": 1}, Outer])
def test_ensure_record_rejects_non_records(value: object) -> None:
    with pytest.raises(DestinationTypeError):
        ensure_record(value)


def test_ensure_record_error_is_type_error() -> None:
    with pytest.raises(TypeError):
        ensure_record(42)
    ensure_record(Outer())


class Node(BaseModel):
    label: str = hydra_field("", env="NODE_LABEL")
    child: Optional[Node] = None


class Tree(BaseModel):
    root: Node = Field(default_factory=Node)
    weight: int = hydra_field(0, env="WEIGHT")


def test_describe_bindings_self_referential_model() -> None:
    assert describe_bindings(Node) == [
        FieldBinding(path="label", serialization_name="label", env="NODE_LABEL"),
    ]


def test_describe_bindings_recursive_model_nested() -> None:
    assert [b.path for b in describe_bindings(Tree)] == ["root.label", "weight"]


def test_describe_bindings_repeats_sibling_types() -> None:
    class Pair(BaseModel):
        left: Inner = Field(default_factory=Inner)
        right: Inner = Field(default_factory=Inner)

    assert [b.path for b in describe_bindings(Pair)] == ["left.leaf", "right.leaf"]


def test_frozen_record_rejected() -> None:
    class Frozen(BaseModel):
        model_config = ConfigDict(frozen=True)

    with pytest.raises(DestinationTypeError, match="mutable"):
        ensure_record(Frozen())
