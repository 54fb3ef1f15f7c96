"""
Module-level IR types for formforge.

A module descriptor owns its fields by value, in declaration order.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .fields import FieldDescriptor


class ModuleDescriptor(BaseModel):
    """
    Immutable, serializable description of a form module.

    Attributes:
        id: Module identifier
        title_en: English title
        title_fr: French title
        version: Schema version of the module
        fields: Ordered field descriptors (array order breaks display-order ties)
        validation_rules: Rule ids applied to every field of the module
    """

    id: str
    title_en: str | None = None
    title_fr: str | None = None
    version: float = 1.0
    fields: list[FieldDescriptor] = Field(default_factory=list)
    validation_rules: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @field_validator("fields", "validation_rules", mode="before")
    @classmethod
    def none_as_empty(cls, v: object) -> object:
        return [] if v is None else v

    def field_ids(self) -> list[str]:
        """Field ids in declaration order (duplicates included)."""
        return [f.id for f in self.fields]

    def get_field(self, field_id: str) -> FieldDescriptor | None:
        """Get a field by id; the last declaration wins for duplicate ids."""
        found = None
        for f in self.fields:
            if f.id == field_id:
                found = f
        return found

    def with_fields(self, fields: list[FieldDescriptor]) -> ModuleDescriptor:
        """Return a copy of this module with a replaced field array."""
        return self.model_copy(update={"fields": list(fields)})
