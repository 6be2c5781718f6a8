"""Type descriptor models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, model_validator


class TypeKind(StrEnum):
    """Semantic kind of a column or array element."""

    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    TEXT = "text"
    BOOLEAN = "boolean"
    BYTEA = "bytea"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    TIMESTAMPTZ = "timestamptz"
    ARRAY = "array"


NUMERIC_KINDS = frozenset({TypeKind.INTEGER, TypeKind.FLOAT, TypeKind.DECIMAL})
TEMPORAL_KINDS = frozenset(
    {TypeKind.DATE, TypeKind.TIME, TypeKind.TIMESTAMP, TypeKind.TIMESTAMPTZ}
)


class TypeDescriptor(BaseModel):
    """A resolved type tag: a scalar kind or ``array`` of another descriptor.

    ``width``/``signed`` apply to integers (and ``width`` to floats),
    ``precision``/``scale`` to decimals, ``timezone`` to timestamps whose
    zone is named by the tag, ``element`` to arrays.
    """

    model_config = ConfigDict(frozen=True)

    kind: TypeKind
    nullable: bool = False
    width: int | None = None
    signed: bool = True
    precision: int | None = None
    scale: int | None = None
    timezone: str | None = None
    element: TypeDescriptor | None = None

    @model_validator(mode="after")
    def check_element(self) -> TypeDescriptor:
        if (self.kind is TypeKind.ARRAY) != (self.element is not None):
            raise ValueError("element is required for arrays and only for arrays")
        return self

    @property
    def is_array(self) -> bool:
        """True for array descriptors."""
        return self.kind is TypeKind.ARRAY

    @property
    def depth(self) -> int:
        """Array nesting depth; 0 for scalars."""
        depth = 0
        node: TypeDescriptor | None = self
        while node is not None and node.kind is TypeKind.ARRAY:
            depth += 1
            node = node.element
        return depth

    @property
    def leaf(self) -> TypeDescriptor:
        """The innermost non-array descriptor."""
        node = self
        while node.element is not None:
            node = node.element
        return node

    @property
    def name(self) -> str:
        """Canonical tag for this descriptor, e.g. ``array(int32 null)``."""
        match self.kind:
            case TypeKind.INTEGER:
                base = f"{'int' if self.signed else 'uint'}{self.width}"
            case TypeKind.FLOAT:
                base = f"float{self.width}"
            case TypeKind.DECIMAL:
                base = "decimal"
                if self.scale is not None:
                    base = f"decimal({self.precision}, {self.scale})"
            case TypeKind.TIMESTAMPTZ if self.timezone:
                base = f"timestamptz('{self.timezone}')"
            case TypeKind.ARRAY if self.element is not None:
                base = f"array({self.element.name})"
            case _:
                base = self.kind.value
        return f"{base} null" if self.nullable else base


TypeDescriptor.model_rebuild()
