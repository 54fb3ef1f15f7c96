"""
Field descriptor types for formforge IR.

This module contains the flat, storage-friendly description of a single form
field. Hierarchy is expressed only through ``parent_id``; the navigable tree is
rebuilt at runtime by the hierarchy builder and is never persisted.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .conditions import ConditionalRule


class FieldKind(str, Enum):
    """Field kinds understood by the bundled renderer."""

    TEXT_BOX = "TextBox"
    TEXT_AREA = "TextArea"
    DROP_DOWN = "DropDown"
    RADIO_BUTTON_LIST = "RadioButtonList"
    CHECK_BOX = "CheckBox"
    CHECK_BOX_LIST = "CheckBoxList"
    DATE_PICKER = "DatePicker"
    DATE_TIME_PICKER = "DateTimePicker"
    NUMERIC = "Numeric"
    CURRENCY = "Currency"
    FILE_UPLOAD = "FileUpload"
    SECTION = "Section"
    FIELDSET = "Fieldset"
    MODAL_TABLE = "ModalTable"
    RICH_TEXT = "RichText"
    SIGNATURE = "Signature"
    LABEL = "Label"
    DIVIDER = "Divider"


CHOICE_KINDS = frozenset(
    {FieldKind.DROP_DOWN, FieldKind.RADIO_BUTTON_LIST, FieldKind.CHECK_BOX_LIST}
)
CONTAINER_KINDS = frozenset({FieldKind.SECTION, FieldKind.FIELDSET})


class FieldOption(BaseModel):
    """
    A selectable option for choice fields.

    Attributes:
        value: Stored value submitted with the form
        label_en: English display label
        label_fr: French display label
        is_default: Whether the option is preselected
        order: Display order among sibling options
    """

    value: str
    label_en: str
    label_fr: str | None = None
    is_default: bool = False
    order: int = 0

    model_config = ConfigDict(frozen=True)


class FieldDescriptor(BaseModel):
    """
    Immutable description of a single form field.

    Every optional attribute left as ``None`` means "not configured", never
    "invalid". ``field_type`` is free text so that hosts can introduce their
    own widget kinds; ``kind`` resolves it against :class:`FieldKind`.

    Attributes:
        id: Unique identifier within the owning module
        field_type: Field kind tag (``TextBox``, ``Section``, ...)
        order: Display order relative to siblings (lower first)
        parent_id: Id of the parent field, ``None`` for root fields
        is_required: Whether a value must be supplied
        min_length: Minimum text length
        max_length: Maximum text length
        pattern: Regular expression the text must match
        validation_rules: Additional rule ids resolved in the rule registry
        conditional_rules: Visibility / enablement rules
        options: Static options for choice fields
        code_set_id: External code set supplying options
        extended_properties: Free-form extension data
    """

    id: str
    field_type: str
    order: int = 1
    parent_id: str | None = None

    label_en: str | None = None
    label_fr: str | None = None
    description_en: str | None = None
    description_fr: str | None = None

    is_required: bool = False
    min_length: int | None = Field(default=None, ge=0)
    max_length: int | None = Field(default=None, ge=0)
    pattern: str | None = None
    validation_rules: list[str] = Field(default_factory=list)

    conditional_rules: list[ConditionalRule] = Field(default_factory=list)

    options: list[FieldOption] = Field(default_factory=list)
    code_set_id: int | None = None

    is_visible: bool = True
    is_read_only: bool = False

    extended_properties: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("parent_id", mode="before")
    @classmethod
    def blank_parent_as_none(cls, v: Any) -> Any:
        """An empty parent reference means "no parent"."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("validation_rules", "conditional_rules", "options", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        """Stored descriptors often carry ``null`` for empty arrays."""
        return [] if v is None else v

    @field_validator("extended_properties", mode="before")
    @classmethod
    def none_as_empty_dict(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def kind(self) -> FieldKind | None:
        """Resolve ``field_type`` to a known kind, or ``None`` for custom kinds."""
        try:
            return FieldKind(self.field_type)
        except ValueError:
            return None

    @property
    def has_conditions(self) -> bool:
        """Check if this field carries conditional rules."""
        return bool(self.conditional_rules)

    @property
    def has_length_limits(self) -> bool:
        return self.min_length is not None or self.max_length is not None

    @property
    def display_label(self) -> str:
        """Primary-language label, falling back to the id."""
        return self.label_en or self.id

    @property
    def secondary_label(self) -> str:
        """Secondary-language label, falling back to the primary label."""
        return self.label_fr or self.display_label

    def supports_options(self) -> bool:
        """Check if this field is a selection type that can use options."""
        return self.kind in CHOICE_KINDS

    def requires_code_set_resolution(self) -> bool:
        """Check if options must be resolved from a code set."""
        return self.code_set_id is not None and not self.options

    @classmethod
    def text_field(
        cls,
        id: str,
        label_en: str,
        label_fr: str | None = None,
        is_required: bool = False,
        order: int = 1,
        **kwargs: Any,
    ) -> FieldDescriptor:
        """Create a text box field."""
        return cls(
            id=id,
            field_type=FieldKind.TEXT_BOX.value,
            label_en=label_en,
            label_fr=label_fr,
            is_required=is_required,
            order=order,
            **kwargs,
        )

    @classmethod
    def section(
        cls,
        id: str,
        title_en: str,
        title_fr: str | None = None,
        order: int = 1,
        **kwargs: Any,
    ) -> FieldDescriptor:
        """Create a section (container) field."""
        return cls(
            id=id,
            field_type=FieldKind.SECTION.value,
            label_en=title_en,
            label_fr=title_fr,
            order=order,
            **kwargs,
        )

    @classmethod
    def dropdown(
        cls,
        id: str,
        label_en: str,
        options: list[FieldOption],
        label_fr: str | None = None,
        is_required: bool = False,
        order: int = 1,
        **kwargs: Any,
    ) -> FieldDescriptor:
        """Create a dropdown field with static options."""
        return cls(
            id=id,
            field_type=FieldKind.DROP_DOWN.value,
            label_en=label_en,
            label_fr=label_fr,
            options=options,
            is_required=is_required,
            order=order,
            **kwargs,
        )
