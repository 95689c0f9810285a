"""Order repository. Keeps the derived total in step with quantity and price."""

import math
from typing import Any, Dict

from mango_api.exceptions import ValidationError
from mango_api.models.order import Order
from mango_api.repositories.base import Repository
from mango_api.schemas.order import OrderSchema


class OrderRepository(Repository[Order]):
    model = Order
    schema = OrderSchema
    resource_name = "order"

    def prepare(self, values: Dict[str, Any]) -> Dict[str, Any]:
        total = round(values["quantity"] * values["unit_price"], 2)
        if not math.isfinite(total):
            raise ValidationError(
                message="Invalid order: total price is out of range",
                errors=[{"field": "unit_price", "message": "Total price is out of range"}],
            )
        values["total_price"] = total
        return values
