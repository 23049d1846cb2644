"""User repository: read access for the workflows, inserts for seeding."""

from ..models import User as UserModel
from .repository import BaseRepository
from .schema import User as UserDB


class UserRepository(BaseRepository[UserDB, UserModel]):
    """Looks up library members by ID."""

    id_prefix = "user"

    @property
    def model_class(self):
        return UserDB

    @property
    def response_schema(self):
        return UserModel
