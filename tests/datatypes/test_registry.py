"""Tests for type tag resolution."""

import pytest
from pydantic import ValidationError

from firebolt_cursor.datatypes.registry import describe, parse_type_tag
from firebolt_cursor.errors import UnsupportedTypeError
from firebolt_cursor.models.types import TypeDescriptor, TypeKind


@pytest.mark.parametrize(
    ("tag", "width", "signed"),
    [
        ("int32", 32, True),
        ("INT", 32, True),
        ("integer", 32, True),
        ("bigint", 64, True),
        ("long", 64, True),
        ("uint8", 8, False),
        ("UInt64", 64, False),
        ("int8", 8, True),
        ("smallint", 16, True),
        ("  int64  ", 64, True),
    ],
)
def test_integers(tag, width, signed):
    descriptor = parse_type_tag(tag)
    assert descriptor.kind is TypeKind.INTEGER
    assert descriptor.width == width
    assert descriptor.signed is signed


@pytest.mark.parametrize(
    ("tag", "width"),
    [("float32", 32), ("real", 32), ("double", 64), ("double precision", 64), ("Float64", 64)],
)
def test_floats(tag, width):
    descriptor = parse_type_tag(tag)
    assert descriptor.kind is TypeKind.FLOAT
    assert descriptor.width == width


def test_decimal_with_precision_and_scale():
    descriptor = parse_type_tag("Decimal(38, 9)")
    assert descriptor.kind is TypeKind.DECIMAL
    assert (descriptor.precision, descriptor.scale) == (38, 9)
    assert descriptor.name == "decimal(38, 9)"


def test_decimal_precision_only_has_zero_scale():
    descriptor = parse_type_tag("numeric(10)")
    assert (descriptor.precision, descriptor.scale) == (10, 0)


def test_bare_decimal():
    descriptor = parse_type_tag("decimal")
    assert descriptor.precision == 38
    assert descriptor.scale is None


@pytest.mark.parametrize(
    ("tag", "kind"),
    [
        ("text", TypeKind.TEXT),
        ("String", TypeKind.TEXT),
        ("varchar(255)", TypeKind.TEXT),
        ("boolean", TypeKind.BOOLEAN),
        ("bytea", TypeKind.BYTEA),
        ("pgdate", TypeKind.DATE),
        ("date", TypeKind.DATE),
        ("time", TypeKind.TIME),
        ("timestamp", TypeKind.TIMESTAMP),
        ("timestampntz", TypeKind.TIMESTAMP),
        ("DateTime64(6)", TypeKind.TIMESTAMP),
        ("timestamp without time zone", TypeKind.TIMESTAMP),
        ("timestamptz", TypeKind.TIMESTAMPTZ),
        ("timestamp with time zone", TypeKind.TIMESTAMPTZ),
    ],
)
def test_scalar_kinds(tag, kind):
    assert parse_type_tag(tag).kind is kind


def test_zone_argument_makes_timestamp_zoned():
    descriptor = parse_type_tag("DateTime64(3, 'Europe/Berlin')")
    assert descriptor.kind is TypeKind.TIMESTAMPTZ
    assert descriptor.timezone == "Europe/Berlin"
    assert descriptor.name == "timestamptz('Europe/Berlin')"


def test_nested_arrays():
    descriptor = parse_type_tag("array(array(int32 null))")
    assert descriptor.kind is TypeKind.ARRAY
    assert descriptor.depth == 2
    assert descriptor.leaf.kind is TypeKind.INTEGER
    assert descriptor.leaf.nullable is True
    assert descriptor.nullable is False
    assert descriptor.name == "array(array(int32 null))"


def test_nullable_wrapper_and_markers():
    assert parse_type_tag("Nullable(String)").nullable is True
    assert parse_type_tag("text null").nullable is True
    assert parse_type_tag("text not null").nullable is False
    outer = parse_type_tag("Array(Nullable(Int32)) null")
    assert outer.nullable is True
    assert outer.element is not None
    assert outer.element.nullable is True


def test_deep_nesting_is_unbounded():
    tag = "array(" * 40 + "text" + ")" * 40
    assert parse_type_tag(tag).depth == 40


def test_results_are_cached():
    assert parse_type_tag("array(text)") is parse_type_tag("array(text)")


def test_describe_resolves_a_header_line():
    kinds = [d.kind for d in describe(["int", "text", "array(date)"])]
    assert kinds == [TypeKind.INTEGER, TypeKind.TEXT, TypeKind.ARRAY]


@pytest.mark.parametrize(
    "tag",
    [
        "",
        "geometry",
        "array",
        "array(text",
        "array()",
        "int32(5)",
        "decimal(0, 0)",
        "decimal(10, 11)",
        "decimal(80)",
        "decimal('x')",
        "timestamp(12)",
        "timestamptz('Mars/Olympus')",
        "datetime('America')",
        "text junk",
        "int32 null null",
        "int32 $",
    ],
)
def test_unsupported_tags_name_the_tag(tag):
    with pytest.raises(UnsupportedTypeError) as excinfo:
        parse_type_tag(tag)
    assert excinfo.value.tag == tag


def test_array_descriptor_requires_element():
    with pytest.raises(ValidationError):
        TypeDescriptor(kind=TypeKind.ARRAY)
    with pytest.raises(ValidationError):
        TypeDescriptor(kind=TypeKind.TEXT, element=TypeDescriptor(kind=TypeKind.TEXT))
