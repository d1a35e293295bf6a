# eduable/schemas.py
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .accessibility import AccessibilitySettings, AccessibilitySettingsPatch


class Role(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


Difficulty = Literal["beginner", "intermediate", "advanced"]
MaterialType = Literal["video", "pdf", "assignment", "quiz", "text"]


class Schema(BaseModel):
    # JSON наружу в camelCase, внутри snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Записи хранилища ---

class User(Schema):
    id: int
    username: str
    email: str
    # Хэш пароля никогда не уходит в ответ
    password: str = Field(default="", exclude=True, repr=False)
    full_name: str
    role: Role = Role.STUDENT
    created_at: datetime
    accessibility_settings: AccessibilitySettings = Field(default_factory=AccessibilitySettings)


class Course(Schema):
    id: int
    title: str
    description: str
    thumbnail: Optional[str] = None
    category: str
    difficulty: Difficulty
    price: int
    teacher_id: int
    created_at: datetime


class Enrollment(Schema):
    id: int
    user_id: int
    course_id: int
    enrollment_date: datetime
    progress: int = 0
    completed: bool = False
    certificate_id: Optional[str] = None


class Material(Schema):
    id: int
    course_id: int
    title: str
    type: MaterialType
    content: str
    order_index: int
    created_at: datetime


class Review(Schema):
    id: int
    user_id: int
    course_id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime


class CertificateTemplateData(Schema):
    student_name: str
    course_name: str
    completion_date: str
    teacher_name: str
    teacher_signature: Optional[str] = None


class Certificate(Schema):
    id: str
    user_id: int
    course_id: int
    issue_date: Optional[datetime] = None
    template_data: CertificateTemplateData


# --- Входные данные ---

class UserCreate(Schema):
    username: str = Field(min_length=3)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=1)
    role: Role = Role.STUDENT


class NewUser(Schema):
    # То, что уходит в хранилище: пароль уже захэширован
    username: str
    email: str
    password: str
    full_name: str
    role: Role = Role.STUDENT
    accessibility_settings: AccessibilitySettings = Field(default_factory=AccessibilitySettings)


class LoginRequest(Schema):
    username: str
    password: str


class AccessibilityUpdate(Schema):
    # Закрытый тип: лишние ключи внутри settings отклоняются
    settings: AccessibilitySettingsPatch


class CourseCreate(Schema):
    title: str = Field(min_length=1)
    description: str
    thumbnail: Optional[str] = None
    category: str
    difficulty: Difficulty
    price: int = Field(ge=0)


class CourseUpdate(Schema):
    # id и teacherId сюда не входят и молча отбрасываются
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    price: Optional[int] = Field(default=None, ge=0)

    def changes(self) -> dict:
        """Только реально переданные поля; null допустим лишь для thumbnail."""
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key == "thumbnail"
        }


class MaterialCreate(Schema):
    title: str = Field(min_length=1)
    type: MaterialType
    content: str
    order_index: int = 0


class EnrollRequest(Schema):
    course_id: int


class ProgressUpdate(Schema):
    progress: int = Field(ge=0, le=100)


class ReviewCreate(Schema):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


class RoleUpdate(Schema):
    role: Role


class Analytics(Schema):
    user_count: int
    course_count: int
    enrollment_count: int


class CapabilitySet(Schema):
    role: Role
    capabilities: List[str]
