"""Mango inventory repository."""

from mango_api.models.mango import Mango
from mango_api.repositories.base import Repository
from mango_api.schemas.mango import MangoSchema


class MangoRepository(Repository[Mango]):
    model = Mango
    schema = MangoSchema
    resource_name = "mango"
