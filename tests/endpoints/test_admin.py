import pytest

from app.core.constants import ContentBlockTypeEnum, CourseStatusEnum, LessonStatusEnum, RoleEnum
from app.crud.course import course as crud_course
from app.crud.user import user as crud_user
from app.models.exercise import Exercise
from app.models.lesson import Lesson
from app.models.module import Module
from tests.helpers.asserts import assert_redirect


class TestAccess:
    def test_admin_dashboard(self, client, login_as, admin, course_tree):
        login_as(admin)
        response = client.get("/admin")
        assert response.status_code == 200
        assert "Administration" in response.text
        assert "Published Courses" in response.text
        assert "/admin/users?role=instructor" in response.text

    def test_student_is_sent_home(self, client, login_as, student):
        login_as(student)
        response = client.get("/admin", follow_redirects=False)
        assert_redirect(response, "/dashboard")

    def test_instructor_cannot_manage_users(self, client, login_as, instructor):
        login_as(instructor)
        response = client.get("/admin/users", follow_redirects=False)
        assert_redirect(response, "/dashboard")

    def test_anonymous_is_sent_to_login(self, client):
        response = client.get("/admin/courses", follow_redirects=False)
        assert_redirect(response, "/auth/login")

    def test_instructor_manages_content(self, client, login_as, instructor):
        login_as(instructor)
        for path in ("/admin/courses", "/admin/modules", "/admin/lessons", "/admin/exercises"):
            assert client.get(path).status_code == 200, path


class TestUserAdministration:
    def test_role_filter(self, client, login_as, admin, student, instructor):
        login_as(admin)
        response = client.get("/admin/users?role=student")
        assert student.email in response.text
        assert instructor.email not in response.text
        assert "Student (1)" in response.text

    def test_unknown_role_filter_lists_everyone(self, client, login_as, admin, student, instructor):
        login_as(admin)
        response = client.get("/admin/users?role=wizard")
        assert student.email in response.text
        assert instructor.email in response.text

    def test_edit_user(self, client, db_session, login_as, admin, student):
        login_as(admin)
        response = client.post(f"/admin/users/{student.id}", data={
            "email": "Promoted@Test.com",
            "role": "instructor",
            "first_name": "Stuart",
            "last_name": "",
            "password": "",
        })
        assert "User updated successfully." in response.text

        db_session.expire_all()
        updated = crud_user.get(db_session, id=student.id)
        assert updated.email == "promoted@test.com"
        assert updated.role == RoleEnum.INSTRUCTOR
        assert updated.first_name == "Stuart"

    def test_edit_user_invalid(self, client, login_as, admin, student):
        login_as(admin)
        response = client.post(f"/admin/users/{student.id}", data={
            "email": "not-an-email",
            "role": "student",
            "password": "short",
        })
        assert response.status_code == 400
        assert "at least 8 characters" in response.text

    def test_delete_user(self, client, db_session, login_as, admin, student):
        login_as(admin)
        response = client.post(f"/admin/users/{student.id}/delete")
        assert "User deleted successfully." in response.text
        db_session.expire_all()
        assert crud_user.get(db_session, id=student.id) is None

    def test_cannot_delete_self(self, client, db_session, login_as, admin):
        login_as(admin)
        response = client.post(f"/admin/users/{admin.id}/delete", follow_redirects=False)
        assert_redirect(response, "/admin/users")
        db_session.expire_all()
        assert crud_user.get(db_session, id=admin.id) is not None


class TestCourseAdministration:
    def course_form(self, **overrides):
        data = {
            "title": "Data Structures",
            "slug": "data-structures",
            "description": "Lists, dicts and sets",
            "difficulty": "intermediate",
            "status": "published",
            "enrollment_type": "open",
            "capacity": "",
            "parent_course_id": "",
            "category_id": "",
            "instructor_id": "",
        }
        data.update(overrides)
        return data

    def test_create_course(self, client, db_session, login_as, instructor):
        login_as(instructor)
        response = client.post("/admin/courses", data=self.course_form())
        assert "Course created successfully." in response.text

        course = crud_course.get_by_slug(db_session, slug="data-structures")
        assert course.status == CourseStatusEnum.PUBLISHED
        assert course.instructor_id == instructor.id
        assert course.capacity is None

    def test_duplicate_slug_rerenders_form(self, client, login_as, instructor, course_tree):
        login_as(instructor)
        response = client.post("/admin/courses", data=self.course_form(slug="python-basics"))
        assert response.status_code == 400
        assert "This slug is already in use." in response.text
        assert 'value="Data Structures"' in response.text

    def test_missing_title(self, client, login_as, instructor):
        login_as(instructor)
        response = client.post("/admin/courses", data=self.course_form(title=""))
        assert response.status_code == 400
        assert "This field is required." in response.text

    def test_update_course(self, client, db_session, login_as, instructor, course_tree):
        course = course_tree["course"]
        login_as(instructor)
        response = client.post(
            f"/admin/courses/{course.id}",
            data=self.course_form(title="Python Basics II", slug="python-basics", capacity="25"),
        )
        assert "Course updated successfully." in response.text
        db_session.expire_all()
        updated = crud_course.get(db_session, id=course.id)
        assert updated.title == "Python Basics II"
        assert updated.capacity == 25

    def test_delete_course(self, client, db_session, login_as, instructor, course_tree):
        course_id = course_tree["course"].id
        login_as(instructor)
        response = client.post(f"/admin/courses/{course_id}/delete")
        assert "Course deleted successfully." in response.text
        db_session.expire_all()
        assert crud_course.get(db_session, id=course_id) is None
        assert db_session.query(Lesson).filter(Lesson.course_id == course_id).count() == 0

    def test_edit_unknown_course(self, client, login_as, instructor):
        login_as(instructor)
        assert client.get("/admin/courses/9999/edit").status_code == 404


class TestModuleAdministration:
    def test_create_module(self, client, db_session, login_as, instructor, course_tree):
        course = course_tree["course"]
        login_as(instructor)
        response = client.post("/admin/modules", data={
            "course_id": str(course.id), "title": "Functions", "sort_order": "3",
        })
        assert "Module created successfully." in response.text
        module = db_session.query(Module).filter(Module.title == "Functions").one()
        assert module.course_id == course.id
        assert module.sort_order == 3

    def test_unknown_course(self, client, login_as, instructor):
        login_as(instructor)
        response = client.post("/admin/modules", data={"course_id": "9999", "title": "Functions"})
        assert response.status_code == 400
        assert "Please choose a course." in response.text

    def test_delete_module(self, client, db_session, login_as, instructor, course_tree):
        module = course_tree["modules"][1]
        module_id = module.id
        login_as(instructor)
        response = client.post(f"/admin/modules/{module_id}/delete")
        assert "Module deleted successfully." in response.text
        db_session.expire_all()
        assert db_session.query(Lesson).filter(Lesson.module_id == module_id).count() == 0


class TestLessonAdministration:
    def test_create_lesson_with_blocks(self, client, db_session, login_as, instructor, course_tree):
        module = course_tree["modules"][1]
        login_as(instructor)
        response = client.post("/admin/lessons", data={
            "module_id": str(module.id),
            "title": "While Loops",
            "content": "Repeat **until** done.",
            "status": "published",
            "content_type": "text",
            "sort_order": "2",
            "block_type": ["text", "code", "text"],
            "block_language": ["", "python", ""],
            "block_content": ["Intro", "while True:\n    break", "   "],
        })
        assert "Lesson created successfully." in response.text

        lesson = db_session.query(Lesson).filter(Lesson.title == "While Loops").one()
        assert lesson.slug == "while-loops"
        assert lesson.course_id == module.course_id
        assert lesson.status == LessonStatusEnum.PUBLISHED
        blocks = [(b.block_type, b.code_language) for b in lesson.content_blocks]
        assert blocks == [(ContentBlockTypeEnum.TEXT, None), (ContentBlockTypeEnum.CODE, "python")]

    def test_invalid_lesson_keeps_blocks(self, client, login_as, instructor, course_tree):
        module = course_tree["modules"][0]
        login_as(instructor)
        response = client.post("/admin/lessons", data={
            "module_id": str(module.id),
            "title": "No",
            "block_type": ["code"],
            "block_language": ["python"],
            "block_content": ["print('kept')"],
        })
        assert response.status_code == 400
        assert "Title must be at least 3 characters long." in response.text
        assert "print(&#39;kept&#39;)" in response.text

    def test_edit_page_lists_blocks(self, client, db_session, login_as, instructor, course_tree):
        lesson = course_tree["lessons"][0]
        login_as(instructor)
        client.post(f"/admin/lessons/{lesson.id}", data={
            "module_id": str(lesson.module_id),
            "title": "Hello World",
            "status": "published",
            "content_type": "mixed",
            "block_type": ["code"],
            "block_language": ["python"],
            "block_content": ["print('hi')"],
        })
        response = client.get(f"/admin/lessons/{lesson.id}/edit")
        assert response.status_code == 200
        assert "print(&#39;hi&#39;)" in response.text

    @pytest.mark.parametrize("path", ["/admin/lessons/9999/edit", "/admin/exercises/9999/edit"])
    def test_unknown_records(self, client, login_as, instructor, path):
        login_as(instructor)
        assert client.get(path).status_code == 404


class TestExerciseAdministration:
    def test_create_and_delete_exercise(self, client, db_session, login_as, instructor, course_tree):
        lesson = course_tree["lessons"][0]
        login_as(instructor)
        response = client.post("/admin/exercises", data={
            "lesson_id": str(lesson.id),
            "title": "Print a greeting",
            "starter_code": "# your code",
            "solution_code": "print('hello')",
            "sort_order": "0",
        })
        assert "Exercise created successfully." in response.text
        exercise = db_session.query(Exercise).filter(Exercise.title == "Print a greeting").one()
        assert exercise.lesson_id == lesson.id

        response = client.post(f"/admin/exercises/{exercise.id}/delete")
        assert "Exercise deleted successfully." in response.text
        db_session.expire_all()
        assert db_session.query(Exercise).count() == 0

    def test_unknown_lesson(self, client, login_as, instructor):
        login_as(instructor)
        response = client.post("/admin/exercises", data={"lesson_id": "9999", "title": "Print a greeting"})
        assert response.status_code == 400
