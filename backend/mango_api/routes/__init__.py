"""
Mango API — Route Aggregator
==============================

What:  Mounts every resource module under its own prefix in one router.
How:   A resource module is a registration: prefix, tag, repository, read
       schema and display names. `build_api_router()` turns each into a
       controller plus a route group.

Route Inventory:
    /mango   Mango inventory
    /orders  Orders
    /users   Users

Adding a resource means writing its model, schema and repository, then
appending one ResourceModule to RESOURCE_MODULES. No existing module changes.
"""

from dataclasses import dataclass
from typing import Sequence, Type

from fastapi import APIRouter
from pydantic import BaseModel

from mango_api.repositories import MangoRepository, OrderRepository, Repository, UserRepository
from mango_api.routes.controller import ResourceController
from mango_api.routes.resource import build_resource_router
from mango_api.schemas import MangoRead, OrderRead, UserRead


@dataclass(frozen=True)
class ResourceModule:
    prefix: str
    tag: str
    repository: Repository
    read_schema: Type[BaseModel]
    label: str
    plural: str


RESOURCE_MODULES: Sequence[ResourceModule] = (
    ResourceModule("/mango", "Mango", MangoRepository(), MangoRead, "Mango", "Mangoes"),
    ResourceModule("/orders", "Orders", OrderRepository(), OrderRead, "Order", "Orders"),
    ResourceModule("/users", "Users", UserRepository(), UserRead, "User", "Users"),
)


def check_prefixes(modules: Sequence[ResourceModule]) -> None:
    """
    Reject duplicate or nested prefixes.

    "/mango" and "/mango/x" would overlap: "/mango/x" is also a valid
    get-by-id path of the first module.
    """
    prefixes = [m.prefix.rstrip("/") for m in modules]
    for i, prefix in enumerate(prefixes):
        if not prefix.startswith("/") or prefix == "":
            raise ValueError(f"Resource prefix must start with '/' and not be the root: {prefix!r}")
        for other in prefixes[i + 1:]:
            if prefix == other or other.startswith(prefix + "/") or prefix.startswith(other + "/"):
                raise ValueError(f"Overlapping resource prefixes: {prefix!r} and {other!r}")


def build_api_router(modules: Sequence[ResourceModule] = RESOURCE_MODULES) -> APIRouter:
    check_prefixes(modules)
    api = APIRouter()
    for module in modules:
        controller = ResourceController(
            repository=module.repository,
            read_schema=module.read_schema,
            label=module.label,
            plural=module.plural,
        )
        api.include_router(build_resource_router(module.prefix, module.tag, controller))
    return api
