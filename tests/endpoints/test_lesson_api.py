from app.crud.bookmark import bookmark as crud_bookmark
from app.schemas.module import ModuleSummary
from app.schemas.progress import LessonCompletion
from tests.helpers.asserts import api_call, assert_error
from tests.helpers.contract import validate_response_schema
from tests.helpers.auth import login


class TestTokenEndpoint:
    def test_issue_token(self, client, student):
        response = api_call(client, "POST", "/api/auth/token", json={"email": student.email, "password": "testpass123"})
        body = response.json()
        assert body["success"] is True
        assert body["data"]["token_type"] == "bearer"

    def test_bad_credentials(self, client, student):
        response = client.post("/api/auth/token", json={"email": student.email, "password": "wrong"})
        assert_error(response, 401, "INVALID_CREDENTIALS")

    def test_malformed_body(self, client):
        response = client.post("/api/auth/token", json={"email": "not-an-email"})
        assert_error(response, 422, "VALIDATION_ERROR")


class TestLearnerActions:
    def test_requires_authentication(self, client, course_tree):
        lesson = course_tree["lessons"][0]
        response = client.post(f"/api/lessons/{lesson.id}/complete")
        assert_error(response, 401, "UNAUTHORIZED")

    def test_complete_with_bearer_token(self, client, course_tree, student, token_for):
        lesson = course_tree["lessons"][0]
        headers = token_for(student)
        client.post(f"/courses/{lesson.course_id}/enroll", headers=headers)

        response = api_call(client, "POST", f"/api/lessons/{lesson.id}/complete", headers=headers)
        completion = validate_response_schema(response.json(), LessonCompletion)
        assert completion.lesson_id == lesson.id
        assert completion.progress_percentage == 33.33
        assert completion.course_completed is False

    def test_complete_with_session(self, client, course_tree, student):
        lesson = course_tree["lessons"][0]
        login(client, student)
        response = api_call(client, "POST", f"/api/lessons/{lesson.id}/complete")
        assert response.json()["message"] == "Lesson marked as complete"

    def test_complete_unknown_lesson(self, client, student, token_for):
        response = client.post("/api/lessons/9999/complete", headers=token_for(student))
        assert_error(response, 404, "NOT_FOUND")

    def test_bookmark_toggles(self, client, db_session, course_tree, student, token_for):
        lesson = course_tree["lessons"][1]
        headers = token_for(student)

        first = api_call(client, "POST", f"/api/lessons/{lesson.id}/bookmark", headers=headers).json()
        assert first["data"] == {"lesson_id": lesson.id, "bookmarked": True}
        assert crud_bookmark.get_by_user_and_lesson(db_session, user_id=student.id, lesson_id=lesson.id)

        second = api_call(client, "POST", f"/api/lessons/{lesson.id}/bookmark", headers=headers).json()
        assert second["data"]["bookmarked"] is False
        assert second["message"] == "Bookmark removed"

    def test_track_time(self, client, course_tree, student, token_for):
        lesson = course_tree["lessons"][0]
        headers = token_for(student)
        api_call(client, "POST", f"/api/lessons/{lesson.id}/time", headers=headers, json={"seconds": 40})
        response = api_call(client, "POST", f"/api/lessons/{lesson.id}/time", headers=headers, json={"seconds": 20})
        assert response.json()["data"]["time_spent"] == 60

    def test_track_time_rejects_non_positive(self, client, course_tree, student, token_for):
        lesson = course_tree["lessons"][0]
        response = client.post(f"/api/lessons/{lesson.id}/time", headers=token_for(student), json={"seconds": 0})
        assert_error(response, 422, "VALIDATION_ERROR")

    def test_invalid_bearer_token(self, client, course_tree):
        lesson = course_tree["lessons"][0]
        response = client.post(
            f"/api/lessons/{lesson.id}/complete", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert_error(response, 401, "UNAUTHORIZED")


class TestModuleListing:
    def test_instructor_lists_modules(self, client, course_tree, instructor, token_for):
        response = api_call(
            client, "GET", f"/api/courses/{course_tree['course'].id}/modules", headers=token_for(instructor)
        )
        modules = validate_response_schema(response.json(), ModuleSummary)
        assert [m.title for m in modules] == ["Getting Started", "Control Flow"]

    def test_student_is_forbidden(self, client, course_tree, student, token_for):
        response = client.get(f"/api/courses/{course_tree['course'].id}/modules", headers=token_for(student))
        assert_error(response, 403, "FORBIDDEN")

    def test_unknown_course(self, client, instructor, token_for):
        response = client.get("/api/courses/9999/modules", headers=token_for(instructor))
        assert_error(response, 404, "NOT_FOUND")
