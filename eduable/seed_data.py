# eduable/seed_data.py
import logging

from . import services
from .auth import hash_password
from .schemas import CourseCreate, MaterialCreate, NewUser, ReviewCreate, Role
from .storage import Storage

logger = logging.getLogger(__name__)

# Пароль у всех демо-пользователей одинаковый
SAMPLE_PASSWORD = "password"

SAMPLE_COURSES = [
    {
        "title": "Web Accessibility Fundamentals",
        "description": "Learn the fundamentals of web accessibility and how to make your websites usable by everyone.",
        "thumbnail": "https://placehold.co/800x400/4F46E5/FFFFFF?text=Web+Accessibility",
        "price": 9900,  # $99.00
        "category": "Web Development",
        "difficulty": "beginner",
    },
    {
        "title": "Advanced ARIA Techniques",
        "description": "Master advanced ARIA patterns and techniques to create complex accessible interfaces.",
        "thumbnail": "https://placehold.co/800x400/4F46E5/FFFFFF?text=Advanced+ARIA",
        "price": 12900,
        "category": "Web Development",
        "difficulty": "advanced",
    },
    {
        "title": "Mobile Accessibility",
        "description": "Learn how to make mobile applications accessible to users with disabilities.",
        "thumbnail": "https://placehold.co/800x400/4F46E5/FFFFFF?text=Mobile+Accessibility",
        "price": 8900,
        "category": "Mobile Development",
        "difficulty": "intermediate",
    },
    {
        "title": "Inclusive Design Principles",
        "description": "Design products that work for everyone by applying inclusive design principles.",
        "thumbnail": "https://placehold.co/800x400/4F46E5/FFFFFF?text=Inclusive+Design",
        "price": 7900,
        "category": "Design",
        "difficulty": "beginner",
    },
]

# Одинаковый набор материалов для каждого курса
SAMPLE_MATERIALS = [
    {"title": "Course Introduction", "type": "video", "content": "Introduction to the course and its objectives.", "order_index": 1},
    {"title": "Core Concepts", "type": "text", "content": "Understanding the core concepts of the subject.", "order_index": 2},
    {"title": "Practical Examples", "type": "text", "content": "Real-world examples and practical applications.", "order_index": 3},
]


def seed(storage: Storage) -> None:
    """Заполняет пустое хранилище демо-данными. Если пользователи уже есть, ничего не делает."""
    if storage.get_user_count() > 0:
        logger.info("Storage is not empty, skipping sample data")
        return

    password = hash_password(SAMPLE_PASSWORD)

    # --- Пользователи ---
    storage.create_user(NewUser(
        username="admin", email="admin@example.com", password=password,
        full_name="Admin User", role=Role.ADMIN,
    ))
    teacher = storage.create_user(NewUser(
        username="teacher", email="teacher@example.com", password=password,
        full_name="Dr. Alex Johnson", role=Role.TEACHER,
    ))

    # --- Курсы и материалы ---
    courses = []
    for course_data in SAMPLE_COURSES:
        course = storage.create_course(teacher.id, CourseCreate(**course_data))
        for material_data in SAMPLE_MATERIALS:
            storage.create_material(course.id, MaterialCreate(**material_data))
        courses.append(course)

    student = storage.create_user(NewUser(
        username="student", email="student@example.com", password=password,
        full_name="Student User", role=Role.STUDENT,
    ))

    # Студент прошёл первый курс: есть сертификат, значит можно оставить отзыв
    first = courses[0]
    services.enroll(storage, student, first.id)
    services.update_progress(storage, student, first.id, 100)
    services.create_review(storage, student, first.id, ReviewCreate(
        rating=5,
        comment="Excellent course with clear explanations and practical examples!",
    ))

    logger.info("Sample data initialized: %d users, %d courses", storage.get_user_count(), len(courses))
