# vizboard/services/setting_values.py
"""
Typed setting values.

At the API boundary a setting value is one of four variants, discriminated by
``type``. Values are turned into text only when written to the database and
parsed back when read; a stored value that no longer parses is returned as
the raw string.
"""

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, StrictInt, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from vizboard.services.csv_service import coerce_cell
from vizboard.utils.exceptions import ValidationError
from vizboard.utils.logger import get_logger

logger = get_logger(__name__)

SETTING_TYPES = ("string", "boolean", "number", "json")


class StringValue(BaseModel):
    type: Literal["string"] = "string"
    value: str

    def serialize(self) -> str:
        return self.value


class BoolValue(BaseModel):
    type: Literal["boolean"] = "boolean"
    value: bool

    def serialize(self) -> str:
        return "true" if self.value else "false"


class NumberValue(BaseModel):
    type: Literal["number"] = "number"
    value: Union[StrictInt, Annotated[float, Field(allow_inf_nan=False)]]

    @field_validator("value", mode="before")
    @classmethod
    def reject_bool(cls, v):
        if isinstance(v, bool):
            raise ValueError("boolean is not a number")
        return v

    def serialize(self) -> str:
        return str(self.value)


class JsonValue(BaseModel):
    type: Literal["json"] = "json"
    value: Any = None

    def serialize(self) -> str:
        return json.dumps(self.value)


SettingValue = Annotated[
    Union[StringValue, BoolValue, NumberValue, JsonValue],
    Field(discriminator="type"),
]

_setting_value_adapter = TypeAdapter(SettingValue)


def parse_setting_value(value: Any, setting_type: str = "string") -> SettingValue:
    """Build the typed variant for a (value, type) pair from a request"""
    if setting_type not in SETTING_TYPES:
        raise ValidationError(
            f"Unknown setting type '{setting_type}'. Allowed types: {', '.join(SETTING_TYPES)}",
            "type",
        )

    if value is None and setting_type != "json":
        raise ValidationError("Setting value is required", "value")

    try:
        return _setting_value_adapter.validate_python(
            {"type": setting_type, "value": value}
        )
    except PydanticValidationError:
        raise ValidationError(
            f"Setting value does not match type '{setting_type}'", "value"
        )


def deserialize_setting_value(raw: str, setting_type: str, key: str = "") -> Any:
    """Parse stored text back to a value; unparseable text comes back unchanged"""
    if setting_type == "boolean":
        if raw in ("true", "false"):
            return raw == "true"
    elif setting_type == "number":
        number = coerce_cell(raw)
        if isinstance(number, (int, float)):
            return number
    elif setting_type == "json":
        try:
            return json.loads(raw)
        except ValueError:
            pass
    else:
        return raw

    logger.warning(
        "Failed to parse setting value", key=key, value=raw, type=setting_type
    )
    return raw
