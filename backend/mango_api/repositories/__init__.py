"""
Mango API — Repositories
==========================

One generic `Repository` carries the create/list/get/update/delete bodies;
each resource subclasses it with its model and entity schema.

Repository Inventory:
    - MangoRepository:  /mango
    - OrderRepository:  /orders (derives total_price)
    - UserRepository:   /users  (unique e-mail)
"""

from mango_api.repositories.base import Repository
from mango_api.repositories.mango import MangoRepository
from mango_api.repositories.order import OrderRepository
from mango_api.repositories.result import Result
from mango_api.repositories.user import UserRepository

__all__ = ["MangoRepository", "OrderRepository", "Repository", "Result", "UserRepository"]
