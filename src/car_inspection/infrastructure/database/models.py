"""SQLAlchemy database models."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID as PostgresUUID
from sqlalchemy.orm import declarative_base, relationship

from src.car_inspection.domain.value_objects.assessment import OverallCondition
from src.car_inspection.domain.value_objects.auth import UserRole
from src.car_inspection.domain.value_objects.part_types import (
    PartCategory,
    PartCondition,
    PartRecommendation,
)

Base = declarative_base()


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class UserModel(Base):
    """SQLAlchemy model for users (admins, inspectors and car owners)."""

    __tablename__ = "users"

    id = Column(PostgresUUID(as_uuid=True), primary_key=True, default=uuid4)

    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(SQLEnum(UserRole, values_callable=_enum_values), nullable=False, default=UserRole.USER)
    is_active = Column(Boolean, nullable=False, default=True)

    # Authentication fields
    password_hash = Column(String(255), nullable=False)
    last_login = Column(DateTime, nullable=True)
    failed_login_attempts = Column(Integer, nullable=False, default=0)
    locked_until = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, email='{self.email}', role='{self.role}')>"


class CarModel(Base):
    """SQLAlchemy model for cars."""

    __tablename__ = "cars"

    id = Column(PostgresUUID(as_uuid=True), primary_key=True, default=uuid4)
    registration_no = Column(String(20), nullable=False, unique=True, index=True)
    make = Column(String(50), nullable=False)
    model = Column(String(50), nullable=False)
    year = Column(Integer, nullable=False)
    owner_id = Column(PostgresUUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"),
                      nullable=True, index=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<CarModel(id={self.id}, registration_no='{self.registration_no}')>"


class InspectionReportModel(Base):
    """SQLAlchemy model for inspection reports.

    Nested value objects (assessment, images, checkpoints, location) are
    stored as JSON documents; the summary counts get their own columns so
    they can be queried.
    """

    __tablename__ = "inspection_reports"

    id = Column(PostgresUUID(as_uuid=True), primary_key=True, default=uuid4)
    report_number = Column(String(20), nullable=False, unique=True, index=True)

    car_id = Column(PostgresUUID(as_uuid=True), ForeignKey("cars.id"), nullable=False, index=True)
    inspector_id = Column(PostgresUUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    inspection_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    overall_rating = Column(Float, nullable=False)
    overall_condition = Column(SQLEnum(OverallCondition, values_callable=_enum_values), nullable=False)

    overall_assessment = Column(JSON, nullable=True)
    car_images = Column(JSON, nullable=False, default=list)
    checkpoints = Column(JSON, nullable=False, default=list)
    inspection_location = Column(JSON, nullable=True)

    # Derived checkpoint counts
    total_checkpoints = Column(Integer, nullable=False, default=0)
    passed_checkpoints = Column(Integer, nullable=False, default=0)
    failed_checkpoints = Column(Integer, nullable=False, default=0)
    warning_checkpoints = Column(Integer, nullable=False, default=0)
    not_applicable_checkpoints = Column(Integer, nullable=False, default=0)

    # Publishing
    is_published = Column(Boolean, nullable=False, default=False, index=True)
    shareable_link = Column(String(64), nullable=True, unique=True)
    published_at = Column(DateTime, nullable=True)
    view_count = Column(Integer, nullable=False, default=0)
    last_viewed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    parts = relationship(
        "CarPartModel",
        back_populates="report",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (f"<InspectionReportModel(id={self.id}, report_number='{self.report_number}', "
                f"is_published={self.is_published})>")


class CarPartModel(Base):
    """SQLAlchemy model for car parts of an inspection report."""

    __tablename__ = "car_parts"
    __table_args__ = (
        Index("ix_car_parts_report_category", "inspection_report_id", "category"),
    )

    id = Column(PostgresUUID(as_uuid=True), primary_key=True, default=uuid4)
    inspection_report_id = Column(
        PostgresUUID(as_uuid=True),
        ForeignKey("inspection_reports.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    category = Column(SQLEnum(PartCategory, values_callable=_enum_values), nullable=False)
    part_name = Column(String(200), nullable=False)
    part_code = Column(String(50), nullable=True)
    condition = Column(SQLEnum(PartCondition, values_callable=_enum_values), nullable=False)
    condition_score = Column(Float, nullable=False)
    issues = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)
    recommendation = Column(SQLEnum(PartRecommendation, values_callable=_enum_values), nullable=True)
    notes = Column(Text, nullable=False, default="")
    inspected_by = Column(PostgresUUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    report = relationship("InspectionReportModel", back_populates="parts")

    def __repr__(self) -> str:
        return (f"<CarPartModel(id={self.id}, report={self.inspection_report_id}, "
                f"category='{self.category}', part_name='{self.part_name}')>")
