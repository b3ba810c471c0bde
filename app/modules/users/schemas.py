from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional, List
from datetime import datetime

from app.config.permissions_config import UserStatus
from app.core.security import check_password_strength


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return check_password_strength(value)


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    status: Optional[UserStatus] = None


class UserResponse(BaseModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    status: UserStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserRoleSummary(BaseModel):
    id: str
    name: str


class RoleUserResponse(BaseModel):
    id: str
    user_id: str
    role_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class RoleUserWithRole(RoleUserResponse):
    role: Optional[UserRoleSummary] = None


class UserWithRolesResponse(UserResponse):
    role_users: List[RoleUserWithRole] = []
