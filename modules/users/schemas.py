from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from modules.users.types import UserRole


class UserBase(BaseModel):
    first_name: str = Field(..., min_length=1, description="First name")
    last_name: str = Field(..., min_length=1, description="Last name")
    email: Optional[str] = Field(None, description="Contact e-mail")
    role: UserRole = UserRole.MINER


class UserCreate(UserBase):
    pass


class UserRead(UserBase):
    id: int

    model_config = ConfigDict(from_attributes=True)


class UserRoleUpdate(BaseModel):
    role: UserRole


class MinerRead(BaseModel):
    id: int
    first_name: str
    last_name: str
