from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from pydantic import Field, PlainSerializer, WithJsonSchema


def _money_json(value: Decimal) -> str:
    return format(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP), "f")


# Amounts a caller enters: whole cents only. Sign checks stay in the engine so a
# negative discount or channel is reported under its own error code.
MoneyInput = Annotated[
    Decimal,
    Field(max_digits=12, decimal_places=2),
    PlainSerializer(_money_json, return_type=str, when_used="json"),
    WithJsonSchema({"type": "string", "pattern": r"^-?\d{1,10}(?:\.\d{2})?$"}, mode="serialization"),
]

# Amounts the engine computes or a persisted record carries.
MoneyValue = Annotated[
    Decimal,
    PlainSerializer(_money_json, return_type=str, when_used="json"),
    WithJsonSchema({"type": "string", "pattern": r"^-?\d{1,10}(?:\.\d{2})?$"}, mode="serialization"),
]

RateValue = Annotated[
    Decimal,
    PlainSerializer(lambda value: format(value.normalize(), "f"), return_type=str, when_used="json"),
    WithJsonSchema({"type": "string"}, mode="serialization"),
]
