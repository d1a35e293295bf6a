# eduable/storage.py
"""
Граница доступа к данным.

`Storage` описывает все операции хранения, `MemStorage` хранит всё в памяти
(для тестов и локального запуска). Реализация поверх SQLAlchemy лежит
в sql_storage.py и выполняет тот же контракт.
"""
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .accessibility import AccessibilitySettings
from .errors import AlreadyEnrolled, DuplicateEmail, DuplicateUsername, NotFound, ValidationError
from .schemas import (
    Certificate, Course, CourseCreate, CourseUpdate, Enrollment, Material,
    MaterialCreate, NewUser, Review, ReviewCreate, Role, User,
)

logger = logging.getLogger(__name__)

# Кто может владеть курсом
COURSE_OWNER_ROLES = (Role.TEACHER, Role.ADMIN)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Storage(ABC):

    # --- Пользователи ---
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def create_user(self, data: NewUser) -> User: ...

    @abstractmethod
    def get_all_users(self) -> List[User]: ...

    @abstractmethod
    def update_user_role(self, user_id: int, role: Role) -> User: ...

    @abstractmethod
    def update_user_accessibility_settings(self, user_id: int, settings: AccessibilitySettings) -> User: ...

    @abstractmethod
    def get_user_count(self) -> int: ...

    # --- Курсы ---
    @abstractmethod
    def get_course(self, course_id: int) -> Optional[Course]: ...

    @abstractmethod
    def get_courses(self, category: Optional[str] = None, difficulty: Optional[str] = None) -> List[Course]: ...

    @abstractmethod
    def get_courses_by_teacher(self, teacher_id: int) -> List[Course]: ...

    @abstractmethod
    def create_course(self, teacher_id: int, data: CourseCreate) -> Course: ...

    @abstractmethod
    def update_course(self, course_id: int, data: CourseUpdate) -> Course: ...

    @abstractmethod
    def delete_course(self, course_id: int) -> None:
        """Удаляет курс вместе с его записями, материалами и отзывами."""

    @abstractmethod
    def get_course_count(self) -> int: ...

    # --- Записи на курс ---
    @abstractmethod
    def get_enrollment(self, user_id: int, course_id: int) -> Optional[Enrollment]: ...

    @abstractmethod
    def get_enrollments_by_user(self, user_id: int) -> List[Enrollment]: ...

    @abstractmethod
    def get_enrollments_by_course(self, course_id: int) -> List[Enrollment]: ...

    @abstractmethod
    def create_enrollment(self, user_id: int, course_id: int) -> Enrollment: ...

    @abstractmethod
    def update_enrollment_progress(self, user_id: int, course_id: int, progress: int, completed: bool) -> Enrollment: ...

    @abstractmethod
    def assign_certificate_to_enrollment(self, user_id: int, course_id: int, certificate_id: str) -> Enrollment: ...

    @abstractmethod
    def get_enrollment_count(self) -> int: ...

    # --- Материалы ---
    @abstractmethod
    def get_material(self, material_id: int) -> Optional[Material]: ...

    @abstractmethod
    def get_materials_by_course(self, course_id: int) -> List[Material]: ...

    @abstractmethod
    def create_material(self, course_id: int, data: MaterialCreate) -> Material: ...

    # --- Отзывы ---
    @abstractmethod
    def get_review(self, review_id: int) -> Optional[Review]: ...

    @abstractmethod
    def get_reviews_by_course(self, course_id: int) -> List[Review]: ...

    @abstractmethod
    def create_review(self, user_id: int, course_id: int, data: ReviewCreate) -> Review: ...

    # --- Сертификаты ---
    @abstractmethod
    def get_certificate(self, certificate_id: str) -> Optional[Certificate]: ...

    @abstractmethod
    def get_certificates_by_user(self, user_id: int) -> List[Certificate]: ...

    @abstractmethod
    def create_certificate(self, certificate: Certificate) -> Certificate: ...

    # Общие проверки для всех реализаций

    def _check_course_owner(self, teacher_id: int) -> None:
        teacher = self.get_user(teacher_id)
        if teacher is None:
            raise ValidationError(f"Teacher {teacher_id} does not exist")
        if teacher.role not in COURSE_OWNER_ROLES:
            raise ValidationError(f"User {teacher_id} cannot own courses")

    def _check_role_change(self, user_id: int, role: Role) -> None:
        # Владелец курсов не может стать студентом, пока курсы за ним
        if Role(role) in COURSE_OWNER_ROLES:
            return
        owned = self.get_courses_by_teacher(user_id)
        if owned:
            raise ValidationError(f"User {user_id} still owns {len(owned)} course(s)")


class MemStorage(Storage):
    """
    Хранилище в памяти процесса: словари + счётчики id.

    Ничего не сохраняется между перезапусками. Создание записей идёт под
    одной блокировкой: проверка уникальности и выдача id атомарны.
    """

    def __init__(self):
        self.users: Dict[int, User] = {}
        self.courses: Dict[int, Course] = {}
        self.enrollments: Dict[Tuple[int, int], Enrollment] = {}
        self.materials: Dict[int, Material] = {}
        self.reviews: Dict[int, Review] = {}
        self.certificates: Dict[str, Certificate] = {}

        self.user_current_id = 1
        self.course_current_id = 1
        self.enrollment_current_id = 1
        self.material_current_id = 1
        self.review_current_id = 1
        self._lock = threading.RLock()

    # --- Пользователи ---
    def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        username = username.lower()
        return next((u for u in self.users.values() if u.username.lower() == username), None)

    def get_user_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        return next((u for u in self.users.values() if u.email.lower() == email), None)

    def create_user(self, data: NewUser) -> User:
        with self._lock:
            if self.get_user_by_username(data.username):
                raise DuplicateUsername()
            if self.get_user_by_email(data.email):
                raise DuplicateEmail()
            user_id = self._next_id("user_current_id")
            user = User(id=user_id, created_at=utcnow(), **dict(data))
            self.users[user_id] = user
            return user

    def get_all_users(self) -> List[User]:
        return list(self.users.values())

    def update_user_role(self, user_id: int, role: Role) -> User:
        with self._lock:
            user = self._require(self.users, user_id, "User")
            self._check_role_change(user_id, role)
            updated = user.model_copy(update={"role": Role(role)})
            self.users[user_id] = updated
            return updated

    def update_user_accessibility_settings(self, user_id: int, settings: AccessibilitySettings) -> User:
        user = self._require(self.users, user_id, "User")
        updated = user.model_copy(update={"accessibility_settings": settings})
        self.users[user_id] = updated
        return updated

    def get_user_count(self) -> int:
        return len(self.users)

    # --- Курсы ---
    def get_course(self, course_id: int) -> Optional[Course]:
        return self.courses.get(course_id)

    def get_courses(self, category: Optional[str] = None, difficulty: Optional[str] = None) -> List[Course]:
        courses = list(self.courses.values())
        if category:
            courses = [c for c in courses if c.category == category]
        if difficulty:
            courses = [c for c in courses if c.difficulty == difficulty]
        return courses

    def get_courses_by_teacher(self, teacher_id: int) -> List[Course]:
        return [c for c in self.courses.values() if c.teacher_id == teacher_id]

    def create_course(self, teacher_id: int, data: CourseCreate) -> Course:
        with self._lock:
            self._check_course_owner(teacher_id)
            course_id = self._next_id("course_current_id")
            course = Course(id=course_id, teacher_id=teacher_id, created_at=utcnow(), **data.model_dump())
            self.courses[course_id] = course
            return course

    def update_course(self, course_id: int, data: CourseUpdate) -> Course:
        course = self._require(self.courses, course_id, "Course")
        updated = course.model_copy(update=data.changes())
        self.courses[course_id] = updated
        return updated

    def delete_course(self, course_id: int) -> None:
        self._require(self.courses, course_id, "Course")
        del self.courses[course_id]

        # Каскад вручную: внешних ключей здесь нет
        enrollment_keys = [key for key, e in self.enrollments.items() if e.course_id == course_id]
        for key in enrollment_keys:
            del self.enrollments[key]
        material_ids = [mid for mid, m in self.materials.items() if m.course_id == course_id]
        for mid in material_ids:
            del self.materials[mid]
        review_ids = [rid for rid, r in self.reviews.items() if r.course_id == course_id]
        for rid in review_ids:
            del self.reviews[rid]

        logger.info(
            "Deleted course %s with %d enrollments, %d materials, %d reviews",
            course_id, len(enrollment_keys), len(material_ids), len(review_ids),
        )

    def get_course_count(self) -> int:
        return len(self.courses)

    # --- Записи на курс ---
    def get_enrollment(self, user_id: int, course_id: int) -> Optional[Enrollment]:
        return self.enrollments.get((user_id, course_id))

    def get_enrollments_by_user(self, user_id: int) -> List[Enrollment]:
        return [e for e in self.enrollments.values() if e.user_id == user_id]

    def get_enrollments_by_course(self, course_id: int) -> List[Enrollment]:
        return [e for e in self.enrollments.values() if e.course_id == course_id]

    def create_enrollment(self, user_id: int, course_id: int) -> Enrollment:
        self._require(self.courses, course_id, "Course")
        key = (user_id, course_id)
        with self._lock:
            if key in self.enrollments:
                raise AlreadyEnrolled()
            enrollment = Enrollment(
                id=self._next_id("enrollment_current_id"),
                user_id=user_id,
                course_id=course_id,
                enrollment_date=utcnow(),
            )
            self.enrollments[key] = enrollment
            return enrollment

    def update_enrollment_progress(self, user_id: int, course_id: int, progress: int, completed: bool) -> Enrollment:
        return self._update_enrollment(user_id, course_id, progress=progress, completed=completed)

    def assign_certificate_to_enrollment(self, user_id: int, course_id: int, certificate_id: str) -> Enrollment:
        return self._update_enrollment(user_id, course_id, certificate_id=certificate_id)

    def get_enrollment_count(self) -> int:
        return len(self.enrollments)

    def _update_enrollment(self, user_id: int, course_id: int, **changes) -> Enrollment:
        key = (user_id, course_id)
        enrollment = self.enrollments.get(key)
        if enrollment is None:
            raise NotFound(f"Enrollment for user {user_id} in course {course_id} not found")
        updated = enrollment.model_copy(update=changes)
        self.enrollments[key] = updated
        return updated

    # --- Материалы ---
    def get_material(self, material_id: int) -> Optional[Material]:
        return self.materials.get(material_id)

    def get_materials_by_course(self, course_id: int) -> List[Material]:
        # sorted стабилен: при равном order_index порядок вставки сохраняется
        materials = [m for m in self.materials.values() if m.course_id == course_id]
        return sorted(materials, key=lambda m: m.order_index)

    def create_material(self, course_id: int, data: MaterialCreate) -> Material:
        self._require(self.courses, course_id, "Course")
        material = Material(id=self._next_id("material_current_id"), course_id=course_id,
                            created_at=utcnow(), **data.model_dump())
        self.materials[material.id] = material
        return material

    # --- Отзывы ---
    def get_review(self, review_id: int) -> Optional[Review]:
        return self.reviews.get(review_id)

    def get_reviews_by_course(self, course_id: int) -> List[Review]:
        return [r for r in self.reviews.values() if r.course_id == course_id]

    def create_review(self, user_id: int, course_id: int, data: ReviewCreate) -> Review:
        self._require(self.courses, course_id, "Course")
        review = Review(id=self._next_id("review_current_id"), user_id=user_id, course_id=course_id,
                        created_at=utcnow(), **data.model_dump())
        self.reviews[review.id] = review
        return review

    # --- Сертификаты ---
    def get_certificate(self, certificate_id: str) -> Optional[Certificate]:
        return self.certificates.get(certificate_id)

    def get_certificates_by_user(self, user_id: int) -> List[Certificate]:
        return [c for c in self.certificates.values() if c.user_id == user_id]

    def create_certificate(self, certificate: Certificate) -> Certificate:
        with self._lock:
            if certificate.id in self.certificates:
                raise ValidationError(f"Certificate {certificate.id} already exists")
            issued = certificate.model_copy(update={"issue_date": utcnow()})
            self.certificates[issued.id] = issued
            return issued

    def _next_id(self, counter: str) -> int:
        with self._lock:
            value = getattr(self, counter)
            setattr(self, counter, value + 1)
            return value

    @staticmethod
    def _require(table: dict, key, entity: str):
        record = table.get(key)
        if record is None:
            raise NotFound(f"{entity} with ID {key} not found")
        return record
