"""Base schema classes.

``SchemaBase`` is used for validated store inputs; ``GraphQLModel`` is used
for upstream GraphQL nodes, which keep every field they were given so the
stored raw payload is the full node.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SchemaBase(BaseModel):
    """Validated input for one store upsert."""

    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
    )


class GraphQLModel(BaseModel):
    """Base class for GraphQL response nodes.

    Field names are snake_case and populated from the camelCase keys of the
    response. Unknown keys are preserved.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    typename: str | None = Field(default=None, alias="__typename")

    def raw(self) -> dict[str, Any]:
        """Dump back to the response shape (camelCase keys, extras included)."""
        return self.model_dump(by_alias=True, mode="json")
