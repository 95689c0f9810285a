"""User repository. A duplicate e-mail is reported as a field error."""

from mango_api.models.user import User
from mango_api.repositories.base import Repository
from mango_api.schemas.user import UserSchema


class UserRepository(Repository[User]):
    model = User
    schema = UserSchema
    resource_name = "user"
    unique_fields = ("email",)
