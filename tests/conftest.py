import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["LOG_TO_FILE"] = "false"
os.environ["SENDGRID_API_KEY"] = ""

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import main
from app.core.config import settings
from app.core.constants import CourseStatusEnum, EnrollmentTypeEnum, LessonStatusEnum, RoleEnum
from app.core.database import Base, get_db
from app.core.security import get_password_hash
from app.models.course import Course
from app.models.exercise import Exercise
from app.models.lesson import Lesson
from app.models.module import Module
from app.models.user import User
from app.services.email import EmailService
from tests.helpers.auth import TEST_PASSWORD, login


@pytest.fixture(scope="function")
def database_engine():
    engine = create_engine(
        settings.TEST_DATABASE_URL or "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(database_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=database_engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture
def sqlite_foreign_keys(db_session):
    """Enforce ON DELETE rules on the shared SQLite connection for one test."""
    db_session.execute(text("PRAGMA foreign_keys=ON"))
    db_session.commit()
    yield
    db_session.rollback()
    db_session.execute(text("PRAGMA foreign_keys=OFF"))
    db_session.commit()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Captures outgoing e-mail instead of calling SendGrid."""
    sent = []

    def _send_email(**kwargs):
        sent.append(kwargs)
        return True

    monkeypatch.setattr(EmailService, "send_email", staticmethod(_send_email))
    return sent


@pytest.fixture(scope="function")
def client(db_session, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    main.app.dependency_overrides[get_db] = lambda: db_session
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


@pytest.fixture
def user_factory(db_session):
    def _user_factory(role=RoleEnum.STUDENT, password=TEST_PASSWORD, email_verified=True, **kwargs):
        suffix = uuid.uuid4().hex[:8]
        user = User(
            username=kwargs.pop("username", f"{role.value}-{suffix}"),
            email=kwargs.pop("email", f"{role.value}-{suffix}@test.com"),
            password_hash=get_password_hash(password) if password else None,
            role=role,
            email_verified=email_verified,
            **kwargs
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _user_factory


@pytest.fixture
def student(user_factory):
    return user_factory(RoleEnum.STUDENT, first_name="Stu")


@pytest.fixture
def instructor(user_factory):
    return user_factory(RoleEnum.INSTRUCTOR, first_name="Ines")


@pytest.fixture
def admin(user_factory):
    return user_factory(RoleEnum.ADMIN, first_name="Ada")


@pytest.fixture
def course_factory(db_session):
    def _course_factory(title="Test Course", status=CourseStatusEnum.PUBLISHED, **kwargs):
        course = Course(
            title=title,
            slug=kwargs.pop("slug", f"course-{uuid.uuid4().hex[:8]}"),
            status=status,
            enrollment_type=kwargs.pop("enrollment_type", EnrollmentTypeEnum.OPEN),
            **kwargs
        )
        db_session.add(course)
        db_session.commit()
        db_session.refresh(course)
        return course
    return _course_factory


@pytest.fixture
def module_factory(db_session):
    def _module_factory(course, title="Module", sort_order=0, **kwargs):
        module = Module(course_id=course.id, title=title, sort_order=sort_order, **kwargs)
        db_session.add(module)
        db_session.commit()
        db_session.refresh(module)
        return module
    return _module_factory


@pytest.fixture
def lesson_factory(db_session):
    def _lesson_factory(module, title="Lesson", sort_order=0, status=LessonStatusEnum.PUBLISHED, **kwargs):
        lesson = Lesson(
            module_id=module.id,
            course_id=module.course_id,
            title=title,
            slug=title.lower().replace(" ", "-"),
            sort_order=sort_order,
            status=status,
            **kwargs
        )
        db_session.add(lesson)
        db_session.commit()
        db_session.refresh(lesson)
        return lesson
    return _lesson_factory


@pytest.fixture
def exercise_factory(db_session):
    def _exercise_factory(lesson, solution_code="print('hello')", **kwargs):
        exercise = Exercise(
            lesson_id=lesson.id,
            title=kwargs.pop("title", "Say hello"),
            solution_code=solution_code,
            **kwargs
        )
        db_session.add(exercise)
        db_session.commit()
        db_session.refresh(exercise)
        return exercise
    return _exercise_factory


@pytest.fixture
def course_tree(course_factory, module_factory, lesson_factory):
    """Published course with two modules and three published lessons."""
    course = course_factory(title="Python Basics", slug="python-basics")
    m1 = module_factory(course, title="Getting Started", sort_order=1)
    m2 = module_factory(course, title="Control Flow", sort_order=2)
    l1 = lesson_factory(m1, title="Hello World", sort_order=1)
    l2 = lesson_factory(m1, title="Variables", sort_order=2)
    l3 = lesson_factory(m2, title="If Statements", sort_order=1)
    return {"course": course, "modules": [m1, m2], "lessons": [l1, l2, l3]}


@pytest.fixture
def login_as(client):
    """Log the shared test client in as the given user."""
    def _login_as(user, password: str = TEST_PASSWORD):
        login(client, user, password)
        return client
    return _login_as


@pytest.fixture
def token_for(client):
    def _token_for(user, password: str = TEST_PASSWORD):
        response = client.post("/api/auth/token", json={"email": user.email, "password": password})
        body = response.json()
        token = body.get("data", {}).get("access_token")
        assert token, f"Token request failed: {body}"
        return {"Authorization": f"Bearer {token}"}
    return _token_for
