"""
User service for registration and authentication
"""

from dataclasses import dataclass
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth.auth_handler import AuthHandler
from app.models.user import User
from app.utils.error_handler import DuplicateEmail, InvalidCredentials

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    user: User
    token: str


class UserService:
    """Service for user account operations"""

    def __init__(self, db: Session, auth_handler: AuthHandler):
        self.db = db
        self.auth_handler = auth_handler

    async def get_user_by_email(self, email: str):
        return self.db.query(User).filter(User.email == email.lower()).first()

    async def register(self, email: str, password: str) -> AuthResult:
        """Create an account and issue its first token"""
        email = email.lower()
        if await self.get_user_by_email(email):
            raise DuplicateEmail()

        user = User(email=email, hashed_password=self.auth_handler.get_password_hash(password))
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same email
            self.db.rollback()
            raise DuplicateEmail(original_error=e)
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)

        token = self.auth_handler.create_access_token(user.id, user.email)
        logger.info(f"New user registered: {user.email}")
        return AuthResult(user=user, token=token)

    async def login(self, email: str, password: str) -> AuthResult:
        """Check credentials and issue a token.

        Unknown email and wrong password raise the same InvalidCredentials.
        """
        user = await self.get_user_by_email(email)

        if user is None:
            logger.warning(f"Login attempt with non-existent email: {email}")
            raise InvalidCredentials()

        if not self.auth_handler.verify_password(password, user.hashed_password):
            logger.warning(f"Failed login attempt for user: {user.email}")
            raise InvalidCredentials()

        token = self.auth_handler.create_access_token(user.id, user.email)
        logger.info(f"Successful login for user: {user.email}")
        return AuthResult(user=user, token=token)
