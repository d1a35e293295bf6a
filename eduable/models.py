# eduable/models.py
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, JSON, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

from .storage import utcnow

Base = declarative_base()


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False)
    email = Column(String, unique=True, nullable=False)
    password = Column(String, nullable=False)  # "<hash>.<salt>"
    full_name = Column(String, nullable=False)
    role = Column(String, nullable=False, default="student")  # "student", "teacher", "admin"
    created_at = Column(DateTime(timezone=True), default=utcnow)
    # Настройки доступности хранятся одним JSON-объектом
    accessibility_settings = Column(JSON, nullable=True)

    # Связь: преподаватель → его курсы
    courses = relationship("Course", back_populates="teacher")


class Course(Base):
    __tablename__ = "courses"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    thumbnail = Column(String, nullable=True)
    category = Column(String, nullable=False, index=True)
    difficulty = Column(String, nullable=False)  # "beginner", "intermediate", "advanced"
    price = Column(Integer, nullable=False)  # в центах
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    teacher = relationship("User", back_populates="courses")
    # Связь: курс → материалы, отсортированные по порядку
    materials = relationship("Material", back_populates="course", order_by="Material.order_index")


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),)
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    enrollment_date = Column(DateTime(timezone=True), default=utcnow)
    progress = Column(Integer, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False)
    certificate_id = Column(String, nullable=True)


class Material(Base):
    __tablename__ = "materials"
    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    title = Column(String, nullable=False)
    type = Column(String, nullable=False)  # "video", "pdf", "assignment", "quiz", "text"
    content = Column(Text, nullable=False)  # URL видео или текст
    order_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    course = relationship("Course", back_populates="materials")


class Review(Base):
    __tablename__ = "reviews"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    rating = Column(Integer, nullable=False)  # 1..5
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Certificate(Base):
    __tablename__ = "certificates"
    id = Column(String, primary_key=True)  # UUID
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    course_id = Column(Integer, nullable=False)  # курс может быть удалён, сертификат остаётся
    issue_date = Column(DateTime(timezone=True), default=utcnow)
    template_data = Column(JSON, nullable=False)
