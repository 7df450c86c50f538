# ==============================================
# JsonType
# ==============================================
#
# PURPOSE:
#   Map a decoded JSON value to one of six primitive kinds.
#   Stateless. Used by FieldStats to build the type histogram.
#
# ENUM: JsonType
# --------------
#   NULL, BOOLEAN, NUMBER, STRING, ARRAY, OBJECT
#
#   - from_value(value) -> JsonType  (classmethod)
#       None → NULL, bool → BOOLEAN (checked before int, since
#       bool is a subclass of int), int/float/Decimal → NUMBER,
#       str → STRING, list/tuple → ARRAY, dict → OBJECT.
#
# ==============================================

from decimal import Decimal
from enum import Enum
from typing import Any


class JsonType(Enum):
    """The primitive kinds a decoded JSON value can take."""
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"

    @classmethod
    def from_value(cls, value: Any) -> "JsonType":
        """
        Classify a decoded JSON value.

        Args:
            value: A value as produced by json.loads / psycopg2 jsonb decoding

        Returns:
            The matching JsonType

        Raises:
            TypeError: If the value is not something JSON can decode to
        """
        if value is None:
            return cls.NULL

        if isinstance(value, bool):
            return cls.BOOLEAN

        if isinstance(value, (int, float, Decimal)):
            return cls.NUMBER

        if isinstance(value, str):
            return cls.STRING

        if isinstance(value, (list, tuple)):
            return cls.ARRAY

        if isinstance(value, dict):
            return cls.OBJECT

        raise TypeError(f"Not a JSON value: {type(value).__name__}")

    @property
    def is_container(self) -> bool:
        return self in (JsonType.ARRAY, JsonType.OBJECT)

    @property
    def is_scalar(self) -> bool:
        """True for the kinds that can be indexed as a plain value."""
        return self in (JsonType.STRING, JsonType.NUMBER, JsonType.BOOLEAN)

    def __str__(self) -> str:
        return self.value
