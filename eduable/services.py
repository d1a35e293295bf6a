# eduable/services.py
import logging
import uuid

from .errors import Forbidden, NotFound
from .permissions import Action, can
from .schemas import (
    Certificate, CertificateTemplateData, CourseCreate, CourseUpdate,
    MaterialCreate, ReviewCreate, User,
)
from .storage import Storage, utcnow

logger = logging.getLogger(__name__)

COMPLETE = 100


def get_course_or_404(storage: Storage, course_id: int):
    course = storage.get_course(course_id)
    if course is None:
        raise NotFound("Course not found")
    return course


# --- Курсы ---

def create_course(storage: Storage, user: User, data: CourseCreate):
    return storage.create_course(user.id, data)


def update_course(storage: Storage, user: User, course_id: int, data: CourseUpdate):
    course = get_course_or_404(storage, course_id)
    if course.teacher_id != user.id:
        raise Forbidden("You don't have permission to update this course")
    return storage.update_course(course_id, data)


def delete_course(storage: Storage, user: User, course_id: int):
    course = get_course_or_404(storage, course_id)
    own = course.teacher_id == user.id and can(user, Action.COURSE_DELETE_OWN)
    if not own and not can(user, Action.COURSE_DELETE_ANY):
        raise Forbidden("You don't have permission to delete this course")
    storage.delete_course(course_id)
    logger.info("User %s deleted course %s", user.id, course_id)


def add_material(storage: Storage, user: User, course_id: int, data: MaterialCreate):
    course = get_course_or_404(storage, course_id)
    if course.teacher_id != user.id:
        raise Forbidden("You don't have permission to add materials to this course")
    return storage.create_material(course_id, data)


def course_enrollments(storage: Storage, user: User, course_id: int):
    course = get_course_or_404(storage, course_id)
    if course.teacher_id != user.id:
        raise Forbidden("You don't have permission to view enrollments for this course")
    return storage.get_enrollments_by_course(course_id)


# --- Обучение ---

def enroll(storage: Storage, user: User, course_id: int):
    get_course_or_404(storage, course_id)
    # Повторная запись даст AlreadyEnrolled из хранилища
    return storage.create_enrollment(user.id, course_id)


def update_progress(storage: Storage, user: User, course_id: int, progress: int):
    """
    Обновляет прогресс студента по курсу.

    Прогресс 100 означает завершение курса: при первом таком обновлении
    выпускается сертификат и привязывается к записи. Повторное 100
    второй сертификат не создаёт.
    """
    enrollment = storage.get_enrollment(user.id, course_id)
    if enrollment is None:
        raise NotFound("Enrollment not found")

    completed = progress == COMPLETE
    enrollment = storage.update_enrollment_progress(user.id, course_id, progress, completed)

    if completed and not enrollment.certificate_id:
        certificate = issue_certificate(storage, user, course_id)
        enrollment = storage.assign_certificate_to_enrollment(user.id, course_id, certificate.id)

    return enrollment


def issue_certificate(storage: Storage, user: User, course_id: int):
    course = get_course_or_404(storage, course_id)
    teacher = storage.get_user(course.teacher_id)

    certificate = storage.create_certificate(Certificate(
        id=str(uuid.uuid4()),
        user_id=user.id,
        course_id=course_id,
        template_data=CertificateTemplateData(
            student_name=user.full_name,
            course_name=course.title,
            completion_date=utcnow().isoformat(),
            teacher_name=teacher.full_name if teacher else "Course Instructor",
        ),
    ))
    logger.info("Issued certificate %s to user %s for course %s", certificate.id, user.id, course_id)
    return certificate


def create_review(storage: Storage, user: User, course_id: int, data: ReviewCreate):
    get_course_or_404(storage, course_id)
    enrollment = storage.get_enrollment(user.id, course_id)
    if enrollment is None or not enrollment.completed:
        raise Forbidden("You must complete the course before leaving a review")
    return storage.create_review(user.id, course_id, data)


def get_certificate(storage: Storage, user: User, certificate_id: str):
    certificate = storage.get_certificate(certificate_id)
    if certificate is None:
        raise NotFound("Certificate not found")
    if certificate.user_id != user.id and not can(user, Action.CERTIFICATE_VIEW_ANY):
        raise Forbidden("You don't have permission to view this certificate")
    return certificate
