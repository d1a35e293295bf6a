# tests/test_seed_data.py
from eduable.auth import verify_password
from eduable.seed_data import SAMPLE_PASSWORD, seed


def test_seed_loads_sample_data(any_storage):
    seed(any_storage)

    assert any_storage.get_user_count() == 3
    assert any_storage.get_course_count() == 4
    teacher = any_storage.get_user_by_username("teacher")
    assert teacher.full_name == "Dr. Alex Johnson"
    assert verify_password(SAMPLE_PASSWORD, teacher.password)

    materials = any_storage.get_materials_by_course(1)
    assert [m.order_index for m in materials] == [1, 2, 3]

    student = any_storage.get_user_by_username("student")
    enrollment = any_storage.get_enrollment(student.id, 1)
    assert enrollment.progress == 100
    assert enrollment.completed is True
    certificate = any_storage.get_certificate(enrollment.certificate_id)
    assert certificate.user_id == student.id
    assert certificate.template_data.teacher_name == "Dr. Alex Johnson"
    # отзыв оставлен по завершённому курсу
    assert [r.user_id for r in any_storage.get_reviews_by_course(1)] == [student.id]


def test_seed_skips_non_empty_storage(any_storage):
    seed(any_storage)
    seed(any_storage)
    assert any_storage.get_user_count() == 3
    assert any_storage.get_course_count() == 4


def test_app_with_seeded_storage_accepts_sample_login(settings):
    from fastapi.testclient import TestClient
    from eduable.main import create_app

    settings.seed_sample_data = True
    with TestClient(create_app(settings=settings)) as client:
        resp = client.post("/api/login", json={"username": "Teacher", "password": SAMPLE_PASSWORD})
        assert resp.status_code == 200
        assert resp.json()["role"] == "teacher"
        assert len(client.get("/api/courses").json()) == 4
