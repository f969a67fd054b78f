from enum import Enum
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class UserRole(str, Enum):
    MANAGER = "manager"
    USER = "user"


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: UserRole
    created_at: datetime

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER
