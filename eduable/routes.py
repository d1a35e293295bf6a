# eduable/routes.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from starlette.concurrency import run_in_threadpool

from . import auth, services
from .accessibility import merge_settings
from .auth import get_storage, require_authenticated, require_role
from .permissions import Action, capabilities, require_capability
from .schemas import (
    AccessibilityUpdate, Analytics, CapabilitySet, Certificate, Course, CourseCreate,
    CourseUpdate, Enrollment, EnrollRequest, LoginRequest, Material, MaterialCreate,
    ProgressUpdate, Review, ReviewCreate, Role, RoleUpdate, User, UserCreate,
)
from .storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# === Аутентификация ===

@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
async def register(request: Request, data: UserCreate, storage: Storage = Depends(get_storage)):
    # В пул потоков уходит только scrypt, проверка и вставка остаются в цикле событий
    password_hash = await run_in_threadpool(auth.hash_password, data.password)
    user = auth.register(storage, data, password_hash)
    auth.login_session(request, user)
    return user


@router.post("/login", response_model=User)
async def login(request: Request, data: LoginRequest, storage: Storage = Depends(get_storage)):
    user = await run_in_threadpool(auth.authenticate, storage, data.username, data.password)
    auth.login_session(request, user)
    return user


@router.post("/logout")
async def logout(request: Request):
    auth.logout_session(request)
    return Response(status_code=status.HTTP_200_OK)


@router.get("/user", response_model=User)
async def get_user(user: User = Depends(require_authenticated)):
    return user


@router.patch("/user/accessibility", response_model=User)
async def update_accessibility(
    data: AccessibilityUpdate,
    user: User = Depends(require_capability(Action.SETTINGS_UPDATE)),
    storage: Storage = Depends(get_storage),
):
    settings = merge_settings(user.accessibility_settings, data.settings)
    return storage.update_user_accessibility_settings(user.id, settings)


@router.get("/user/capabilities", response_model=CapabilitySet)
async def get_capabilities(user: User = Depends(require_authenticated)):
    """Для клиентского route guard: те же права, что проверяет сервер."""
    allowed = sorted(action.value for action in capabilities(user.role))
    return CapabilitySet(role=user.role, capabilities=allowed)


# === Курсы ===

@router.get("/courses", response_model=List[Course])
async def list_courses(
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    storage: Storage = Depends(get_storage),
):
    return storage.get_courses(category, difficulty)


@router.get("/courses/{course_id}", response_model=Course)
async def get_course(course_id: int, storage: Storage = Depends(get_storage)):
    return services.get_course_or_404(storage, course_id)


@router.post("/courses", response_model=Course, status_code=status.HTTP_201_CREATED)
async def create_course(
    data: CourseCreate,
    user: User = Depends(require_capability(Action.COURSE_CREATE)),
    storage: Storage = Depends(get_storage),
):
    return services.create_course(storage, user, data)


@router.put("/courses/{course_id}", response_model=Course)
async def update_course(
    course_id: int,
    data: CourseUpdate,
    user: User = Depends(require_capability(Action.COURSE_UPDATE_OWN)),
    storage: Storage = Depends(get_storage),
):
    return services.update_course(storage, user, course_id, data)


@router.delete("/courses/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(
    course_id: int,
    user: User = Depends(require_authenticated),
    storage: Storage = Depends(get_storage),
):
    services.delete_course(storage, user, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Материалы ---

@router.get("/courses/{course_id}/materials", response_model=List[Material])
async def list_materials(course_id: int, storage: Storage = Depends(get_storage)):
    return storage.get_materials_by_course(course_id)


@router.post("/courses/{course_id}/materials", response_model=Material, status_code=status.HTTP_201_CREATED)
async def create_material(
    course_id: int,
    data: MaterialCreate,
    user: User = Depends(require_capability(Action.MATERIAL_CREATE_OWN)),
    storage: Storage = Depends(get_storage),
):
    return services.add_material(storage, user, course_id, data)


# --- Отзывы ---

@router.get("/courses/{course_id}/reviews", response_model=List[Review])
async def list_reviews(course_id: int, storage: Storage = Depends(get_storage)):
    return storage.get_reviews_by_course(course_id)


@router.post("/courses/{course_id}/reviews", response_model=Review, status_code=status.HTTP_201_CREATED)
async def create_review(
    course_id: int,
    data: ReviewCreate,
    user: User = Depends(require_capability(Action.REVIEW_CREATE)),
    storage: Storage = Depends(get_storage),
):
    return services.create_review(storage, user, course_id, data)


# === Запись на курс и прогресс ===

@router.post("/enroll", response_model=Enrollment, status_code=status.HTTP_201_CREATED)
async def enroll(
    data: EnrollRequest,
    user: User = Depends(require_capability(Action.ENROLLMENT_CREATE)),
    storage: Storage = Depends(get_storage),
):
    return services.enroll(storage, user, data.course_id)


@router.get("/enrollments", response_model=List[Enrollment])
async def list_enrollments(user: User = Depends(require_authenticated), storage: Storage = Depends(get_storage)):
    return storage.get_enrollments_by_user(user.id)


@router.patch("/enrollments/{course_id}/progress", response_model=Enrollment)
async def update_progress(
    course_id: int,
    data: ProgressUpdate,
    user: User = Depends(require_authenticated),
    storage: Storage = Depends(get_storage),
):
    return services.update_progress(storage, user, course_id, data.progress)


# === Сертификаты ===

@router.get("/certificates", response_model=List[Certificate])
async def list_certificates(user: User = Depends(require_authenticated), storage: Storage = Depends(get_storage)):
    return storage.get_certificates_by_user(user.id)


@router.get("/certificates/{certificate_id}", response_model=Certificate)
async def get_certificate(
    certificate_id: str,
    user: User = Depends(require_authenticated),
    storage: Storage = Depends(get_storage),
):
    return services.get_certificate(storage, user, certificate_id)


# === Администратор ===

@router.get("/admin/users", response_model=List[User])
async def list_users(_: User = Depends(require_role(Role.ADMIN)), storage: Storage = Depends(get_storage)):
    return storage.get_all_users()


@router.patch("/admin/users/{user_id}/role", response_model=User)
async def update_user_role(
    user_id: int,
    data: RoleUpdate,
    admin: User = Depends(require_role(Role.ADMIN)),
    storage: Storage = Depends(get_storage),
):
    user = storage.update_user_role(user_id, data.role)
    logger.info("Admin %s changed role of user %s to %s", admin.id, user_id, data.role.value)
    return user


@router.get("/admin/analytics", response_model=Analytics)
async def analytics(_: User = Depends(require_role(Role.ADMIN)), storage: Storage = Depends(get_storage)):
    return Analytics(
        user_count=storage.get_user_count(),
        course_count=storage.get_course_count(),
        enrollment_count=storage.get_enrollment_count(),
    )


# === Преподаватель ===

@router.get("/teacher/courses", response_model=List[Course])
async def teacher_courses(
    user: User = Depends(require_capability(Action.COURSE_LIST_OWN)),
    storage: Storage = Depends(get_storage),
):
    return storage.get_courses_by_teacher(user.id)


@router.get("/teacher/courses/{course_id}/enrollments", response_model=List[Enrollment])
async def teacher_course_enrollments(
    course_id: int,
    user: User = Depends(require_capability(Action.ENROLLMENT_VIEW_OWN_COURSE)),
    storage: Storage = Depends(get_storage),
):
    return services.course_enrollments(storage, user, course_id)
