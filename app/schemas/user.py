"""
Pydantic schemas for authentication operations
"""

from pydantic import BaseModel, Field, validator, EmailStr

from app.auth.auth_handler import MAX_PASSWORD_BYTES


class UserRegister(BaseModel):
    """Schema for registering a new user"""
    email: EmailStr = Field(..., description="Valid email address")
    password: str = Field(..., min_length=1, description="Account password (at most 72 bytes UTF-8)")

    @validator('email')
    def normalize_email(cls, v):
        return v.strip().lower()

    @validator('password')
    def password_fits_bcrypt(cls, v):
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes')
        return v


class UserLogin(BaseModel):
    """Schema for user login"""
    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")

    @validator('email')
    def normalize_email(cls, v):
        v = v.strip().lower()
        if not v:
            raise ValueError('Email is required')
        return v


class UserPublic(BaseModel):
    """User identity as exposed to clients (never includes the digest)"""
    id: str
    email: str

    class Config:
        from_attributes = True


class AuthData(BaseModel):
    user: UserPublic
    token: str


class AuthResponse(BaseModel):
    """Envelope returned by register and login"""
    success: bool = True
    message: str
    data: AuthData
