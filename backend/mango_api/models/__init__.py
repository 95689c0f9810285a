"""ORM models. Importing this package registers every table on Base.metadata."""

from mango_api.models.mango import Mango
from mango_api.models.order import Order
from mango_api.models.user import User

__all__ = ["Mango", "Order", "User"]
