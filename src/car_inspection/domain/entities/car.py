"""Car entity referenced by inspection reports."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from ..exceptions import ValidationError


class Car:
    """A car that can be inspected."""

    def __init__(
        self,
        registration_no: str,
        make: str,
        model: str,
        year: int,
        car_id: Optional[UUID] = None,
        owner_id: Optional[UUID] = None,
        created_at: Optional[datetime] = None
    ):
        if not registration_no or not registration_no.strip():
            raise ValidationError("Registration number cannot be empty")
        if not make or not make.strip():
            raise ValidationError("Make cannot be empty")
        if not model or not model.strip():
            raise ValidationError("Model cannot be empty")
        if year < 1900 or year > datetime.utcnow().year + 1:
            raise ValidationError(f"Invalid model year: {year}")

        self._id = car_id or uuid4()
        self._registration_no = registration_no.strip().upper()
        self._make = make.strip()
        self._model = model.strip()
        self._year = year
        self._owner_id = owner_id
        self._created_at = created_at or datetime.utcnow()

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def registration_no(self) -> str:
        return self._registration_no

    @property
    def make(self) -> str:
        return self._make

    @property
    def model(self) -> str:
        return self._model

    @property
    def year(self) -> int:
        return self._year

    @property
    def owner_id(self) -> Optional[UUID]:
        return self._owner_id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def display_name(self) -> str:
        return f"{self._year} {self._make} {self._model}"

    def is_owned_by(self, user_id: UUID) -> bool:
        return self._owner_id is not None and self._owner_id == user_id

    def __eq__(self, other) -> bool:
        if not isinstance(other, Car):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return f"Car({self.display_name}, {self._registration_no})"
