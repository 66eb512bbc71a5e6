from pydantic import BaseModel, Field, field_validator


class UserCreate(BaseModel):
    """Schema for user registration"""
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=100)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Usernames are stored trimmed and must not be blank"""
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


class UserLogin(BaseModel):
    """Schema for user login"""
    username: str
    password: str


class TokenResponse(BaseModel):
    """Schema for authentication token response"""
    token: str


class MessageResponse(BaseModel):
    """Schema for plain confirmations"""
    message: str
