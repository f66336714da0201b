from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


ROLE_ADMIN = "Admin"
ROLE_SALES = "Sales"
ROLE_PRODUCTION = "Production"
VALID_ROLES = (ROLE_ADMIN, ROLE_SALES, ROLE_PRODUCTION)


class User(db.Model):
    """
    User accounts for authentication and attribution.

    Email is globally unique and stored lower-cased. Role is one of
    Admin, Sales, Production. The password is only ever kept as a bcrypt hash.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(16), nullable=False, index=True)
    organization = db.Column(db.String(255), nullable=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "organization": self.organization,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }

    def to_public_dict(self) -> dict:
        """Identity fields returned alongside a fresh token."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "organization": self.organization,
        }
