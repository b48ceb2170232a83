# Overview: Service-layer operations for auth; password hashing and account creation.

"""
Authentication boundary for the inventory API.

Passwords are hashed with bcrypt (cost factor 12). Account ownership is the
only authorization rule: every core call receives the caller's user_id
explicitly from the route layer.
"""

import bcrypt

from ..extensions import db
from ..models import User
from ..time_utils import utcnow
from .errors import ConflictError, InvalidInputError


class AuthenticationError(Exception):
    """Raised when credentials do not match an active account."""


MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInputError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe comparison; malformed hashes simply fail."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def register_user(email: str, password: str, name: str | None = None) -> User:
    email = (email or "").strip().lower()
    if "@" not in email:
        raise InvalidInputError("A valid email is required")

    if db.session.query(User.id).filter_by(email=email).first() is not None:
        raise ConflictError("Email already registered", details={"email": email})

    user = User(email=email, name=name, password_hash=hash_password(password), is_active=True)
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User:
    email = (email or "").strip().lower()
    user = db.session.query(User).filter_by(email=email).first()
    if user is None or not user.is_active or not verify_password(password or "", user.password_hash):
        raise AuthenticationError("Invalid email or password")

    user.last_login_at = utcnow()
    db.session.commit()
    return user
