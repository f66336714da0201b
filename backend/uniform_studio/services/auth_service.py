# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Passwords are hashed with bcrypt (cost from BCRYPT_ROUNDS, default 10) and
never stored or returned in plaintext. Email addresses are unique across the
system and compared lower-cased.

Registration rules:
- email must look like an address
- password at least 6 characters
- name at least 2 characters
- role is one of Admin, Sales, Production
- organization is optional
"""

import re

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User, VALID_ROLES
from ..validation import ValidationError, ConflictError


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2
DEFAULT_BCRYPT_ROUNDS = 10


def _bcrypt_rounds() -> int:
    return int(current_app.config.get("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS))


def hash_password(password: str) -> str:
    """Hash password using bcrypt with a per-hash random salt."""
    salt = bcrypt.gensalt(rounds=_bcrypt_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for any mismatch or malformed input; never raises.
    bcrypt.checkpw() compares in constant time.
    """
    if not isinstance(password, str) or not isinstance(password_hash, str):
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except (ValueError, TypeError):
        return False


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_registration(data) -> dict:
    """Validate a registration payload; returns cleaned fields or raises ValidationError."""
    if not isinstance(data, dict):
        raise ValidationError("Invalid input")

    errors = []
    email = data.get("email")
    password = data.get("password")
    name = data.get("name")
    role = data.get("role")
    organization = data.get("organization")

    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        errors.append({"field": "email", "message": "Invalid email address"})
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        errors.append({"field": "password", "message": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"})
    if not isinstance(name, str) or len(name.strip()) < MIN_NAME_LENGTH:
        errors.append({"field": "name", "message": f"Name must be at least {MIN_NAME_LENGTH} characters"})
    if role not in VALID_ROLES:
        errors.append({"field": "role", "message": "Role must be Admin, Sales, or Production"})
    if organization is not None and not isinstance(organization, str):
        errors.append({"field": "organization", "message": "Organization must be a string"})

    if errors:
        raise ValidationError("Invalid input", details=errors)

    return {
        "email": normalize_email(email),
        "password": password,
        "name": name.strip(),
        "role": role,
        "organization": organization.strip() if isinstance(organization, str) and organization.strip() else None,
    }


def validate_login(data) -> tuple[str, str]:
    if not isinstance(data, dict):
        raise ValidationError("Invalid input")

    errors = []
    email = data.get("email")
    password = data.get("password")
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        errors.append({"field": "email", "message": "Invalid email address"})
    if not isinstance(password, str) or not password:
        errors.append({"field": "password", "message": "Password is required"})
    if errors:
        raise ValidationError("Invalid input", details=errors)
    return normalize_email(email), password


def create_user(
    email: str,
    password: str,
    name: str,
    role: str,
    organization: str | None = None,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValidationError: role outside the fixed set
        ConflictError: email already registered
    """
    if role not in VALID_ROLES:
        raise ValidationError("Role must be Admin, Sales, or Production")

    email = normalize_email(email)
    if db.session.query(User).filter_by(email=email).first():
        raise ConflictError("Email already registered")

    user = User(
        email=email,
        name=name,
        role=role,
        organization=organization,
        password_hash=hash_password(password),
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Concurrent registration won the unique constraint
        db.session.rollback()
        raise ConflictError("Email already registered")

    current_app.logger.info("User registered: id=%s role=%s", user.id, user.role)
    return user


def register(data) -> User:
    fields = validate_registration(data)
    return create_user(**fields)


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise. Unknown email and wrong
    password are indistinguishable to the caller.
    """
    user = db.session.query(User).filter_by(email=normalize_email(email)).first()
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user
