"""User entity for the car inspection service."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from ..exceptions import ValidationError
from ..value_objects.auth import RequesterIdentity, UserRole


class User:
    """An account that can sign in: admin, inspector or car owner."""

    def __init__(
        self,
        email: str,
        name: str,
        role: UserRole = UserRole.USER,
        user_id: Optional[UUID] = None,
        is_active: bool = True,
        phone: Optional[str] = None,
        last_login: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        if not email or "@" not in email:
            raise ValidationError("Invalid email format")
        if not name or not name.strip():
            raise ValidationError("Name cannot be empty")
        if not isinstance(role, UserRole):
            raise ValidationError("Role must be a UserRole enum")

        self._id = user_id or uuid4()
        self._email = email.lower().strip()
        self._name = name.strip()
        self._role = role
        self._is_active = is_active
        self._phone = phone.strip() if phone else None
        self._last_login = last_login
        self._created_at = created_at or datetime.utcnow()
        self._updated_at = updated_at or datetime.utcnow()

    @property
    def id(self) -> UUID:
        """Get user ID."""
        return self._id

    @property
    def email(self) -> str:
        """Get user email."""
        return self._email

    @property
    def name(self) -> str:
        return self._name

    @property
    def role(self) -> UserRole:
        """Get user role."""
        return self._role

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def phone(self) -> Optional[str]:
        return self._phone

    @property
    def last_login(self) -> Optional[datetime]:
        return self._last_login

    @property
    def created_at(self) -> datetime:
        """Get creation timestamp."""
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        """Get last update timestamp."""
        return self._updated_at

    def is_admin(self) -> bool:
        return self._role == UserRole.ADMIN

    def can_write_reports(self) -> bool:
        """Check if user may create and edit inspection reports."""
        return self._is_active and self._role in (UserRole.ADMIN, UserRole.INSPECTOR)

    def to_identity(self) -> RequesterIdentity:
        """Identity passed to services on behalf of this user."""
        return RequesterIdentity(user_id=self._id, role=self._role)

    def activate(self) -> None:
        self._is_active = True
        self._updated_at = datetime.utcnow()

    def deactivate(self) -> None:
        self._is_active = False
        self._updated_at = datetime.utcnow()

    def record_login(self, at: Optional[datetime] = None) -> None:
        self._last_login = at or datetime.utcnow()

    def __eq__(self, other) -> bool:
        if not isinstance(other, User):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return f"User({self._name}, {self._role.value})"

    def __repr__(self) -> str:
        return (f"User(id={self._id}, email='{self._email}', "
                f"role='{self._role.value}', active={self._is_active})")
