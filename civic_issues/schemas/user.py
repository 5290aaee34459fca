# civic_issues/schemas/user.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from civic_issues.models.user import AccountStatus, AuthProvider, UserRole
from civic_issues.schemas.common import PHONE_PATTERN, DepartmentLite

class UserOut(BaseModel):
    id: int
    email: EmailStr
    full_name: str
    phone_number: Optional[str] = None
    profile_image: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    role: UserRole
    account_status: AccountStatus
    auth_provider: AuthProvider
    last_login: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

class OfficerOut(UserOut):
    departments: List[DepartmentLite] = []

class ProfileUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    phone_number: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    street: Optional[str] = Field(default=None, max_length=200)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    pincode: Optional[str] = Field(default=None, pattern=r"^[0-9]{5,10}$")

class OfficerCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    password: str = Field(min_length=6, max_length=512)
    full_name: str = Field(min_length=2, max_length=100)
    phone_number: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    departments: List[int] = []

class OfficerUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    phone_number: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)

class AccountStatusPatch(BaseModel):
    account_status: AccountStatus

class DepartmentAssign(BaseModel):
    department_id: int
