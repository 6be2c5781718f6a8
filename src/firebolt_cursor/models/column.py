"""Column descriptor model."""

from pydantic import BaseModel, ConfigDict, Field

from firebolt_cursor.models.types import TypeDescriptor


class ColumnDescriptor(BaseModel):
    """One column of a result, resolved once when the cursor opens."""

    model_config = ConfigDict(frozen=True)

    name: str
    position: int = Field(ge=1)
    type: TypeDescriptor
    type_tag: str
    table_name: str = ""
    catalog_name: str = ""

    @property
    def nullable(self) -> bool:
        """Whether the column's type admits nulls."""
        return self.type.nullable
