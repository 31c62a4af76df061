"""
Authentication handler: password digests, JWT tokens and the request gate
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.config import Settings
from app.database import get_db
from app.models.user import User
from app.utils.error_handler import ConfigurationError, ExpiredToken, InvalidToken, Unauthenticated

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes our 401 instead of FastAPI's 403
security = HTTPBearer(auto_error=False)

# bcrypt ignores anything past this many bytes
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class CurrentUser:
    """Identity resolved from a verified bearer token"""
    user_id: str
    email: str
    token: str


class AuthHandler:
    """Handles password hashing and token issuing/verification"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.pwd_context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds
        )

    def _secret(self) -> str:
        if not self.settings.jwt_secret:
            raise ConfigurationError("Server misconfiguration: JWT secret is not set")
        return self.settings.jwt_secret

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        # bcrypt only reads the first 72 bytes; longer input must not match a shorter password
        if len(plain_password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            return False
        return self.pwd_context.verify(plain_password, hashed_password)

    def get_password_hash(self, password: str) -> str:
        """Hash a password"""
        return self.pwd_context.hash(password)

    def create_access_token(self, user_id: str, email: str, expires_delta: Optional[timedelta] = None) -> str:
        """Create a signed JWT for the given user"""
        now = datetime.now(timezone.utc)
        if expires_delta is None:
            expires_delta = timedelta(hours=self.settings.access_token_expire_hours)

        claims = {
            "sub": user_id,
            "email": email,
            "iat": now,
            "exp": now + expires_delta,
        }
        return jwt.encode(claims, self._secret(), algorithm=self.settings.jwt_algorithm)

    def verify_token(self, token: str) -> dict:
        """Verify signature and expiry, returning the claims"""
        secret = self._secret()
        try:
            return jwt.decode(token, secret, algorithms=[self.settings.jwt_algorithm])
        except ExpiredSignatureError:
            raise ExpiredToken()
        except JWTError:
            raise InvalidToken()


def get_auth_handler(request: Request) -> AuthHandler:
    return request.app.state.auth_handler


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_handler: AuthHandler = Depends(get_auth_handler),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Request gate for order routes: bearer token -> live user"""
    # Scheme must be exactly "Bearer"; HTTPBearer alone accepts any casing
    if credentials is None or credentials.scheme != "Bearer" or not credentials.credentials:
        raise Unauthenticated("Token not provided")

    token = credentials.credentials
    try:
        payload = auth_handler.verify_token(token)
    except (InvalidToken, ExpiredToken) as e:
        logger.warning(f"Rejected bearer token: {e.message}")
        raise

    user_id = payload.get("sub")
    if not user_id:
        raise InvalidToken()

    # A valid token does not imply the account still exists
    user = db.query(User).filter(User.id == str(user_id)).first()
    if user is None:
        raise Unauthenticated("User not found")

    return CurrentUser(user_id=user.id, email=user.email, token=token)
