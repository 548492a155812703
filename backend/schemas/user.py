from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Literal, Optional

from models.users import Role

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for user registration requests; admins are never self-registered
class UserCreate(UserBase):
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)
    role: Literal["USER", "SELLER"] = "USER"

# Output schema for user profile details
class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    role: Role
    eco_score: int
    banned: bool
    created_at: Optional[datetime] = None

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

# Schema for paginated user list response
class PaginatedUsersResponse(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int

class UserStatistics(BaseModel):
    total_users: int
    total_sellers: int
    total_admins: int
    banned_count: int
    active_count: int
    total_count: int
