"""SQLAlchemy repository implementations."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.car_inspection.application.ports.repositories import (
    CarPartRepository,
    CarRepository,
    InspectionReportRepository,
    ReportQuery,
    UserRepository,
)
from src.car_inspection.domain.entities.car import Car
from src.car_inspection.domain.entities.car_part import CarPart
from src.car_inspection.domain.entities.inspection_report import InspectionReport
from src.car_inspection.domain.entities.user import User
from src.car_inspection.domain.exceptions import ConflictError
from src.car_inspection.domain.value_objects.assessment import OverallAssessment
from src.car_inspection.domain.value_objects.checkpoint import Checkpoint
from src.car_inspection.domain.value_objects.location import InspectionLocation
from src.car_inspection.domain.value_objects.media import CarImage, PartImage
from src.car_inspection.domain.value_objects.part_types import PartIssue
from src.car_inspection.infrastructure.database.models import (
    CarModel,
    CarPartModel,
    InspectionReportModel,
    UserModel,
)
from src.car_inspection.infrastructure.logging import get_logger, log_database_operation, mask_token


class SQLAlchemyInspectionReportRepository(InspectionReportRepository):
    """SQLAlchemy implementation of inspection report repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def save(self, report: InspectionReport) -> InspectionReport:
        log_database_operation(self._logger, "INSERT", "inspection_reports",
                               report_id=str(report.id),
                               report_number=report.report_number)
        self._session.add(self._entity_to_model(report))
        try:
            await self._session.flush()
        except IntegrityError as e:
            await self._session.rollback()
            raise ConflictError(f"Report number {report.report_number} already exists") from e
        return report

    async def update(self, report: InspectionReport) -> InspectionReport:
        log_database_operation(self._logger, "UPDATE", "inspection_reports",
                               report_id=str(report.id))
        model = await self._get_model(report.id)
        if not model:
            raise ConflictError(f"Inspection report {report.id} no longer exists")

        self._update_model_from_entity(model, report)
        await self._session.flush()
        return report

    async def find_by_id(self, report_id: UUID) -> Optional[InspectionReport]:
        log_database_operation(self._logger, "SELECT", "inspection_reports",
                               report_id=str(report_id))
        model = await self._get_model(report_id)
        return self._model_to_entity(model) if model else None

    async def find_by_shareable_link(self, link: str) -> Optional[InspectionReport]:
        log_database_operation(self._logger, "SELECT", "inspection_reports",
                               shareable_link=mask_token(link))
        stmt = select(InspectionReportModel).where(InspectionReportModel.shareable_link == link)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def increment_view_count(self, link: str, viewed_at: datetime) -> Optional[InspectionReport]:
        """Single conditional UPDATE ... RETURNING; concurrent readers never lose a count."""
        log_database_operation(self._logger, "UPDATE", "inspection_reports",
                               shareable_link=mask_token(link),
                               operation_detail="increment_view_count")
        stmt = (
            update(InspectionReportModel)
            .where(
                InspectionReportModel.shareable_link == link,
                InspectionReportModel.is_published.is_(True),
            )
            .values(
                view_count=InspectionReportModel.view_count + 1,
                last_viewed_at=viewed_at,
            )
            .returning(InspectionReportModel)
            .execution_options(synchronize_session=False, populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def report_number_exists(self, report_number: str) -> bool:
        stmt = select(func.count(InspectionReportModel.id)).where(
            InspectionReportModel.report_number == report_number
        )
        result = await self._session.execute(stmt)
        return (result.scalar() or 0) > 0

    async def list_reports(self, query: ReportQuery, offset: int, limit: int) -> List[InspectionReport]:
        log_database_operation(self._logger, "SELECT", "inspection_reports",
                               offset=offset, limit=limit)
        stmt = (
            self._apply_query(select(InspectionReportModel), query)
            .order_by(desc(InspectionReportModel.created_at))
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def count(self, query: ReportQuery) -> int:
        stmt = self._apply_query(select(func.count(InspectionReportModel.id)), query)
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    async def delete(self, report_id: UUID) -> bool:
        log_database_operation(self._logger, "DELETE", "inspection_reports",
                               report_id=str(report_id))
        stmt = delete(InspectionReportModel).where(InspectionReportModel.id == report_id)
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def _get_model(self, report_id: UUID) -> Optional[InspectionReportModel]:
        stmt = select(InspectionReportModel).where(InspectionReportModel.id == report_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    def _apply_query(stmt, query: ReportQuery):
        if query.inspector_id is not None:
            stmt = stmt.where(InspectionReportModel.inspector_id == query.inspector_id)
        if query.car_ids is not None:
            stmt = stmt.where(InspectionReportModel.car_id.in_(list(query.car_ids)))
        if query.is_published is not None:
            stmt = stmt.where(InspectionReportModel.is_published.is_(query.is_published))
        return stmt

    def _model_to_entity(self, model: InspectionReportModel) -> InspectionReport:
        """Convert database model to domain entity."""
        return InspectionReport(
            report_id=model.id,
            car_id=model.car_id,
            inspector_id=model.inspector_id,
            report_number=model.report_number,
            inspection_date=model.inspection_date,
            overall_rating=model.overall_rating,
            overall_condition=model.overall_condition,
            overall_assessment=(
                OverallAssessment.from_dict(model.overall_assessment) if model.overall_assessment else None
            ),
            car_images=[CarImage.from_dict(image) for image in model.car_images or []],
            checkpoints=[Checkpoint.from_dict(checkpoint) for checkpoint in model.checkpoints or []],
            inspection_location=(
                InspectionLocation.from_dict(model.inspection_location) if model.inspection_location else None
            ),
            is_published=model.is_published,
            shareable_link=model.shareable_link,
            view_count=model.view_count or 0,
            published_at=model.published_at,
            last_viewed_at=model.last_viewed_at,
            created_at=model.created_at,
            updated_at=model.updated_at
        )

    def _entity_to_model(self, report: InspectionReport) -> InspectionReportModel:
        """Convert domain entity to database model."""
        model = InspectionReportModel(
            id=report.id,
            report_number=report.report_number,
            car_id=report.car_id,
            inspector_id=report.inspector_id,
            view_count=report.view_count,
            last_viewed_at=report.last_viewed_at,
            created_at=report.created_at,
        )
        self._update_model_from_entity(model, report)
        return model

    @staticmethod
    def _update_model_from_entity(model: InspectionReportModel, report: InspectionReport) -> None:
        """Copy editable and lifecycle fields. View counters are left to the atomic increment."""
        summary = report.inspection_summary
        model.inspection_date = report.inspection_date
        model.overall_rating = report.overall_rating
        model.overall_condition = report.overall_condition
        model.overall_assessment = report.overall_assessment.to_dict() if report.overall_assessment else None
        model.car_images = [image.to_dict() for image in report.car_images]
        model.checkpoints = [checkpoint.to_dict() for checkpoint in report.checkpoints]
        model.inspection_location = (
            report.inspection_location.to_dict() if report.inspection_location else None
        )
        model.total_checkpoints = summary.total_checkpoints
        model.passed_checkpoints = summary.passed_checkpoints
        model.failed_checkpoints = summary.failed_checkpoints
        model.warning_checkpoints = summary.warning_checkpoints
        model.not_applicable_checkpoints = summary.not_applicable_checkpoints
        model.is_published = report.is_published
        model.shareable_link = report.shareable_link
        model.published_at = report.published_at
        model.updated_at = report.updated_at


class SQLAlchemyCarPartRepository(CarPartRepository):
    """SQLAlchemy implementation of car part repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def save(self, part: CarPart) -> CarPart:
        log_database_operation(self._logger, "INSERT", "car_parts",
                               part_id=str(part.id),
                               report_id=str(part.inspection_report_id))
        model = CarPartModel(
            id=part.id,
            inspection_report_id=part.inspection_report_id,
            inspected_by=part.inspected_by,
            created_at=part.created_at,
        )
        self._update_model_from_entity(model, part)
        self._session.add(model)
        await self._session.flush()
        return part

    async def update(self, part: CarPart) -> CarPart:
        log_database_operation(self._logger, "UPDATE", "car_parts", part_id=str(part.id))
        stmt = select(CarPartModel).where(CarPartModel.id == part.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if not model:
            raise ConflictError(f"Car part {part.id} no longer exists")

        self._update_model_from_entity(model, part)
        await self._session.flush()
        return part

    async def find_by_id(self, part_id: UUID) -> Optional[CarPart]:
        stmt = select(CarPartModel).where(CarPartModel.id == part_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def find_by_report(self, report_id: UUID) -> List[CarPart]:
        log_database_operation(self._logger, "SELECT", "car_parts", report_id=str(report_id))
        stmt = (
            select(CarPartModel)
            .where(CarPartModel.inspection_report_id == report_id)
            .order_by(CarPartModel.created_at, CarPartModel.id)
        )
        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def delete(self, part_id: UUID) -> bool:
        log_database_operation(self._logger, "DELETE", "car_parts", part_id=str(part_id))
        stmt = delete(CarPartModel).where(CarPartModel.id == part_id)
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def delete_by_report(self, report_id: UUID) -> int:
        log_database_operation(self._logger, "DELETE", "car_parts", report_id=str(report_id))
        stmt = delete(CarPartModel).where(CarPartModel.inspection_report_id == report_id)
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    def _model_to_entity(model: CarPartModel) -> CarPart:
        return CarPart(
            part_id=model.id,
            inspection_report_id=model.inspection_report_id,
            category=model.category,
            part_name=model.part_name,
            part_code=model.part_code,
            condition=model.condition,
            condition_score=model.condition_score,
            issues=[PartIssue.from_dict(issue) for issue in model.issues or []],
            images=[PartImage.from_dict(image) for image in model.images or []],
            recommendation=model.recommendation,
            notes=model.notes or "",
            inspected_by=model.inspected_by,
            created_at=model.created_at,
            updated_at=model.updated_at
        )

    @staticmethod
    def _update_model_from_entity(model: CarPartModel, part: CarPart) -> None:
        model.category = part.category
        model.part_name = part.part_name
        model.part_code = part.part_code
        model.condition = part.condition
        model.condition_score = part.condition_score
        model.issues = [issue.to_dict() for issue in part.issues]
        model.images = [image.to_dict() for image in part.images]
        model.recommendation = part.recommendation
        model.notes = part.notes
        model.updated_at = part.updated_at


class SQLAlchemyCarRepository(CarRepository):
    """SQLAlchemy implementation of car repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def save(self, car: Car) -> Car:
        stmt = select(CarModel).where(CarModel.id == car.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model:
            log_database_operation(self._logger, "UPDATE", "cars", car_id=str(car.id))
            model.registration_no = car.registration_no
            model.make = car.make
            model.model = car.model
            model.year = car.year
            model.owner_id = car.owner_id
        else:
            log_database_operation(self._logger, "INSERT", "cars", car_id=str(car.id))
            self._session.add(CarModel(
                id=car.id,
                registration_no=car.registration_no,
                make=car.make,
                model=car.model,
                year=car.year,
                owner_id=car.owner_id,
                created_at=car.created_at
            ))

        await self._session.flush()
        return car

    async def find_by_id(self, car_id: UUID) -> Optional[Car]:
        stmt = select(CarModel).where(CarModel.id == car_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def find_by_registration_no(self, registration_no: str) -> Optional[Car]:
        stmt = select(CarModel).where(CarModel.registration_no == registration_no.strip().upper())
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def find_ids_by_owner(self, owner_id: UUID) -> List[UUID]:
        stmt = select(CarModel.id).where(CarModel.owner_id == owner_id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def _model_to_entity(model: CarModel) -> Car:
        return Car(
            car_id=model.id,
            registration_no=model.registration_no,
            make=model.make,
            model=model.model,
            year=model.year,
            owner_id=model.owner_id,
            created_at=model.created_at
        )


class SQLAlchemyUserRepository(UserRepository):
    """SQLAlchemy implementation of user repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def save(self, user: User, password_hash: Optional[str] = None) -> User:
        model = await self._get_model(user.id)

        if model:
            log_database_operation(self._logger, "UPDATE", "users",
                                   user_id=str(user.id), email=user.email)
            model.email = user.email
            model.name = user.name
            model.phone = user.phone
            model.role = user.role
            model.is_active = user.is_active
            model.updated_at = datetime.utcnow()
            if password_hash is not None:
                model.password_hash = password_hash
        else:
            log_database_operation(self._logger, "INSERT", "users",
                                   user_id=str(user.id), email=user.email)
            self._session.add(UserModel(
                id=user.id,
                email=user.email,
                name=user.name,
                phone=user.phone,
                role=user.role,
                is_active=user.is_active,
                password_hash=password_hash or "",
                created_at=user.created_at,
                updated_at=datetime.utcnow()
            ))

        await self._session.flush()
        return user

    async def find_by_id(self, user_id: UUID) -> Optional[User]:
        log_database_operation(self._logger, "SELECT", "users", user_id=str(user_id))
        model = await self._get_model(user_id)
        return self._model_to_entity(model) if model else None

    async def find_by_email(self, email: str) -> Optional[User]:
        sanitized_email = email.lower().strip()
        log_database_operation(self._logger, "SELECT", "users", lookup_field="email")
        stmt = select(UserModel).where(UserModel.email == sanitized_email)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def update_password_hash(self, user_id: UUID, password_hash: str) -> bool:
        model = await self._get_model(user_id)
        if not model:
            return False

        model.password_hash = password_hash
        model.updated_at = datetime.utcnow()
        await self._session.flush()
        return True

    async def update_login_info(
        self, user_id: UUID, failed_attempts: int = 0, locked_until: Optional[datetime] = None
    ) -> bool:
        model = await self._get_model(user_id)
        if not model:
            return False

        model.failed_login_attempts = failed_attempts
        model.locked_until = locked_until
        model.updated_at = datetime.utcnow()
        await self._session.flush()
        return True

    async def record_login(self, user_id: UUID) -> bool:
        model = await self._get_model(user_id)
        if not model:
            return False

        model.last_login = datetime.utcnow()
        model.failed_login_attempts = 0
        model.locked_until = None
        await self._session.flush()
        return True

    async def get_password_hash(self, user_id: UUID) -> Optional[str]:
        stmt = select(UserModel.password_hash).where(UserModel.id == user_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_failed_attempts(self, user_id: UUID) -> int:
        stmt = select(UserModel.failed_login_attempts).where(UserModel.id == user_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() or 0

    async def get_lockout_expiry(self, user_id: UUID) -> Optional[datetime]:
        stmt = select(UserModel.locked_until).where(UserModel.id == user_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def _get_model(self, user_id: UUID) -> Optional[UserModel]:
        stmt = select(UserModel).where(UserModel.id == user_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    def _model_to_entity(model: UserModel) -> User:
        """Convert database model to domain entity."""
        return User(
            user_id=model.id,
            email=model.email,
            name=model.name,
            role=model.role,
            is_active=model.is_active,
            phone=model.phone,
            last_login=model.last_login,
            created_at=model.created_at,
            updated_at=model.updated_at
        )
