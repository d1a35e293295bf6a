# eduable/sql_storage.py
import logging
from contextlib import contextmanager
from datetime import timezone
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from . import models
from .accessibility import AccessibilitySettings
from .errors import AlreadyEnrolled, DuplicateEmail, DuplicateUsername, NotFound, ValidationError
from .schemas import (
    Certificate, Course, CourseCreate, CourseUpdate, Enrollment, Material,
    MaterialCreate, NewUser, Review, ReviewCreate, Role, User,
)
from .storage import COURSE_OWNER_ROLES, Storage, utcnow

logger = logging.getLogger(__name__)


class SqlStorage(Storage):
    """Хранилище поверх SQLAlchemy: одна сессия БД на каждый вызов."""

    def __init__(self, session_factory):
        self.SessionLocal = session_factory

    @contextmanager
    def session(self):
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # --- Пользователи ---
    def get_user(self, user_id: int) -> Optional[User]:
        with self.session() as db:
            row = db.get(models.User, user_id)
            return _user(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self.session() as db:
            row = db.query(models.User).filter(func.lower(models.User.username) == username.lower()).first()
            return _user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self.session() as db:
            row = db.query(models.User).filter(func.lower(models.User.email) == email.lower()).first()
            return _user(row) if row else None

    def create_user(self, data: NewUser) -> User:
        try:
            with self.session() as db:
                _check_unique_user(db, data)
                row = models.User(
                    username=data.username,
                    email=data.email,
                    password=data.password,
                    full_name=data.full_name,
                    role=Role(data.role).value,
                    created_at=utcnow(),
                    accessibility_settings=data.accessibility_settings.model_dump(),
                )
                db.add(row)
                db.flush()
                return _user(row)
        except IntegrityError as e:
            # Параллельная регистрация успела вставить ту же строку раньше
            if self.get_user_by_username(data.username):
                raise DuplicateUsername() from e
            raise DuplicateEmail() from e

    def get_all_users(self) -> List[User]:
        with self.session() as db:
            return [_user(row) for row in db.query(models.User).order_by(models.User.id).all()]

    def update_user_role(self, user_id: int, role: Role) -> User:
        with self.session() as db:
            row = _require(db, models.User, user_id, "User")
            if Role(role) not in COURSE_OWNER_ROLES:
                owned = db.query(models.Course).filter(models.Course.teacher_id == user_id).count()
                if owned:
                    raise ValidationError(f"User {user_id} still owns {owned} course(s)")
            row.role = Role(role).value
            db.flush()
            return _user(row)

    def update_user_accessibility_settings(self, user_id: int, settings: AccessibilitySettings) -> User:
        with self.session() as db:
            row = _require(db, models.User, user_id, "User")
            # JSON-колонку переприсваиваем целиком, иначе изменение не отследится
            row.accessibility_settings = settings.model_dump()
            db.flush()
            return _user(row)

    def get_user_count(self) -> int:
        with self.session() as db:
            return db.query(models.User).count()

    # --- Курсы ---
    def get_course(self, course_id: int) -> Optional[Course]:
        with self.session() as db:
            row = db.get(models.Course, course_id)
            return _course(row) if row else None

    def get_courses(self, category: Optional[str] = None, difficulty: Optional[str] = None) -> List[Course]:
        with self.session() as db:
            query = db.query(models.Course)
            if category:
                query = query.filter(models.Course.category == category)
            if difficulty:
                query = query.filter(models.Course.difficulty == difficulty)
            return [_course(row) for row in query.order_by(models.Course.id).all()]

    def get_courses_by_teacher(self, teacher_id: int) -> List[Course]:
        with self.session() as db:
            rows = db.query(models.Course).filter(models.Course.teacher_id == teacher_id).order_by(models.Course.id).all()
            return [_course(row) for row in rows]

    def create_course(self, teacher_id: int, data: CourseCreate) -> Course:
        self._check_course_owner(teacher_id)
        with self.session() as db:
            row = models.Course(teacher_id=teacher_id, created_at=utcnow(), **data.model_dump())
            db.add(row)
            db.flush()
            return _course(row)

    def update_course(self, course_id: int, data: CourseUpdate) -> Course:
        with self.session() as db:
            row = _require(db, models.Course, course_id, "Course")
            for key, value in data.changes().items():
                setattr(row, key, value)
            db.flush()
            return _course(row)

    def delete_course(self, course_id: int) -> None:
        with self.session() as db:
            row = _require(db, models.Course, course_id, "Course")
            # Каскад явно, в одной транзакции
            enrollments = db.query(models.Enrollment).filter(models.Enrollment.course_id == course_id).delete()
            materials = db.query(models.Material).filter(models.Material.course_id == course_id).delete()
            reviews = db.query(models.Review).filter(models.Review.course_id == course_id).delete()
            db.delete(row)
        logger.info(
            "Deleted course %s with %d enrollments, %d materials, %d reviews",
            course_id, enrollments, materials, reviews,
        )

    def get_course_count(self) -> int:
        with self.session() as db:
            return db.query(models.Course).count()

    # --- Записи на курс ---
    def get_enrollment(self, user_id: int, course_id: int) -> Optional[Enrollment]:
        with self.session() as db:
            row = _find_enrollment(db, user_id, course_id)
            return _enrollment(row) if row else None

    def get_enrollments_by_user(self, user_id: int) -> List[Enrollment]:
        with self.session() as db:
            rows = db.query(models.Enrollment).filter(models.Enrollment.user_id == user_id).order_by(models.Enrollment.id).all()
            return [_enrollment(row) for row in rows]

    def get_enrollments_by_course(self, course_id: int) -> List[Enrollment]:
        with self.session() as db:
            rows = db.query(models.Enrollment).filter(models.Enrollment.course_id == course_id).order_by(models.Enrollment.id).all()
            return [_enrollment(row) for row in rows]

    def create_enrollment(self, user_id: int, course_id: int) -> Enrollment:
        try:
            with self.session() as db:
                _require(db, models.Course, course_id, "Course")
                if _find_enrollment(db, user_id, course_id):
                    raise AlreadyEnrolled()
                row = models.Enrollment(
                    user_id=user_id,
                    course_id=course_id,
                    enrollment_date=utcnow(),
                    progress=0,
                    completed=False,
                )
                db.add(row)
                db.flush()
                return _enrollment(row)
        except IntegrityError as e:
            # Гонка двух запросов: уникальный индекс отработал раньше нашей проверки
            raise AlreadyEnrolled() from e

    def update_enrollment_progress(self, user_id: int, course_id: int, progress: int, completed: bool) -> Enrollment:
        with self.session() as db:
            row = _require_enrollment(db, user_id, course_id)
            row.progress = progress
            row.completed = completed
            db.flush()
            return _enrollment(row)

    def assign_certificate_to_enrollment(self, user_id: int, course_id: int, certificate_id: str) -> Enrollment:
        with self.session() as db:
            row = _require_enrollment(db, user_id, course_id)
            row.certificate_id = certificate_id
            db.flush()
            return _enrollment(row)

    def get_enrollment_count(self) -> int:
        with self.session() as db:
            return db.query(models.Enrollment).count()

    # --- Материалы ---
    def get_material(self, material_id: int) -> Optional[Material]:
        with self.session() as db:
            row = db.get(models.Material, material_id)
            return _material(row) if row else None

    def get_materials_by_course(self, course_id: int) -> List[Material]:
        with self.session() as db:
            rows = (
                db.query(models.Material)
                .filter(models.Material.course_id == course_id)
                .order_by(models.Material.order_index, models.Material.id)
                .all()
            )
            return [_material(row) for row in rows]

    def create_material(self, course_id: int, data: MaterialCreate) -> Material:
        with self.session() as db:
            _require(db, models.Course, course_id, "Course")
            row = models.Material(course_id=course_id, created_at=utcnow(), **data.model_dump())
            db.add(row)
            db.flush()
            return _material(row)

    # --- Отзывы ---
    def get_review(self, review_id: int) -> Optional[Review]:
        with self.session() as db:
            row = db.get(models.Review, review_id)
            return _review(row) if row else None

    def get_reviews_by_course(self, course_id: int) -> List[Review]:
        with self.session() as db:
            rows = db.query(models.Review).filter(models.Review.course_id == course_id).order_by(models.Review.id).all()
            return [_review(row) for row in rows]

    def create_review(self, user_id: int, course_id: int, data: ReviewCreate) -> Review:
        with self.session() as db:
            _require(db, models.Course, course_id, "Course")
            row = models.Review(user_id=user_id, course_id=course_id, created_at=utcnow(), **data.model_dump())
            db.add(row)
            db.flush()
            return _review(row)

    # --- Сертификаты ---
    def get_certificate(self, certificate_id: str) -> Optional[Certificate]:
        with self.session() as db:
            row = db.get(models.Certificate, certificate_id)
            return _certificate(row) if row else None

    def get_certificates_by_user(self, user_id: int) -> List[Certificate]:
        with self.session() as db:
            rows = (
                db.query(models.Certificate)
                .filter(models.Certificate.user_id == user_id)
                .order_by(models.Certificate.issue_date)
                .all()
            )
            return [_certificate(row) for row in rows]

    def create_certificate(self, certificate: Certificate) -> Certificate:
        with self.session() as db:
            if db.get(models.Certificate, certificate.id) is not None:
                raise ValidationError(f"Certificate {certificate.id} already exists")
            row = models.Certificate(
                id=certificate.id,
                user_id=certificate.user_id,
                course_id=certificate.course_id,
                issue_date=utcnow(),
                template_data=certificate.template_data.model_dump(),
            )
            db.add(row)
            db.flush()
            return _certificate(row)


# Вспомогательные функции: строки ORM → записи домена

def _require(db, model, key, entity):
    row = db.get(model, key)
    if row is None:
        raise NotFound(f"{entity} with ID {key} not found")
    return row


def _find_enrollment(db, user_id, course_id):
    return db.query(models.Enrollment).filter(
        models.Enrollment.user_id == user_id,
        models.Enrollment.course_id == course_id,
    ).first()


def _require_enrollment(db, user_id, course_id):
    row = _find_enrollment(db, user_id, course_id)
    if row is None:
        raise NotFound(f"Enrollment for user {user_id} in course {course_id} not found")
    return row


def _check_unique_user(db, data):
    username = db.query(models.User).filter(func.lower(models.User.username) == data.username.lower()).first()
    if username is not None:
        raise DuplicateUsername()
    email = db.query(models.User).filter(func.lower(models.User.email) == data.email.lower()).first()
    if email is not None:
        raise DuplicateEmail()


def _utc(value):
    # SQLite отдаёт naive datetime даже для DateTime(timezone=True)
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _user(row):
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        password=row.password,
        full_name=row.full_name,
        role=row.role,
        created_at=_utc(row.created_at),
        accessibility_settings=row.accessibility_settings or {},
    )


def _course(row):
    return Course(
        id=row.id,
        title=row.title,
        description=row.description,
        thumbnail=row.thumbnail,
        category=row.category,
        difficulty=row.difficulty,
        price=row.price,
        teacher_id=row.teacher_id,
        created_at=_utc(row.created_at),
    )


def _enrollment(row):
    return Enrollment(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        enrollment_date=_utc(row.enrollment_date),
        progress=row.progress,
        completed=row.completed,
        certificate_id=row.certificate_id,
    )


def _material(row):
    return Material(
        id=row.id,
        course_id=row.course_id,
        title=row.title,
        type=row.type,
        content=row.content,
        order_index=row.order_index,
        created_at=_utc(row.created_at),
    )


def _review(row):
    return Review(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        rating=row.rating,
        comment=row.comment,
        created_at=_utc(row.created_at),
    )


def _certificate(row):
    return Certificate(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        issue_date=_utc(row.issue_date),
        template_data=row.template_data,
    )
