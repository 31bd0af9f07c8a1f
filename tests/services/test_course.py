import pytest

from app.core.constants import CourseLevelEnum, CourseStatusEnum, EnrollmentTypeEnum, RoleEnum
from app.core.exceptions import NotFoundError, ValidationFailed
from app.crud.course import course as crud_course
from app.models.lesson import Lesson
from app.models.module import Module
from app.schemas.course import CourseFilters, CourseForm
from app.services.course import course_service
from app.services.enrollment import enrollment_service
from tests.helpers.auth import context_for


def _form(**overrides):
    data = {"title": "Intro to Testing", "slug": "intro-to-testing"}
    data.update(overrides)
    return CourseForm.model_validate(data)


class TestCatalog:
    def test_only_published_open_courses_listed(self, db_session, course_factory):
        visible = course_factory(title="Visible")
        course_factory(title="Draft", status=CourseStatusEnum.DRAFT)
        course_factory(title="Closed", enrollment_type=EnrollmentTypeEnum.CLOSED)

        courses = course_service.list_published_courses(db_session)
        assert [c.id for c in courses] == [visible.id]

    def test_sorted_by_sort_order(self, db_session, course_factory):
        second = course_factory(title="Second", sort_order=2)
        first = course_factory(title="First", sort_order=1)
        courses = course_service.list_published_courses(db_session)
        assert [c.id for c in courses] == [first.id, second.id]

    def test_search_matches_title_description_and_tags(self, db_session, course_factory):
        by_title = course_factory(title="Python Basics")
        by_description = course_factory(title="Scripting", description="Automate things with python")
        by_tags = course_factory(title="Data", tags="pandas, python")
        course_factory(title="Rust Basics")

        courses = course_service.list_published_courses(db_session, filters=CourseFilters(search="python"))
        assert {c.id for c in courses} == {by_title.id, by_description.id, by_tags.id}

    def test_difficulty_filter(self, db_session, course_factory):
        advanced = course_factory(title="Deep Dive", difficulty=CourseLevelEnum.ADVANCED)
        course_factory(title="Intro", difficulty=CourseLevelEnum.BEGINNER)
        courses = course_service.list_published_courses(
            db_session, filters=CourseFilters(difficulty=CourseLevelEnum.ADVANCED)
        )
        assert [c.id for c in courses] == [advanced.id]

    def test_drafts_hidden_from_students(self, db_session, course_factory, student, instructor):
        draft = course_factory(status=CourseStatusEnum.DRAFT)
        with pytest.raises(NotFoundError):
            course_service.get_visible_course(db_session, course_id=draft.id, current_user_context=context_for(student))
        with pytest.raises(NotFoundError):
            course_service.get_visible_course(db_session, course_id=draft.id, current_user_context=None)
        course = course_service.get_visible_course(db_session, course_id=draft.id, current_user_context=context_for(instructor))
        assert course.id == draft.id

    def test_published_subcourses(self, db_session, course_factory):
        parent = course_factory(title="Track")
        live = course_factory(title="Live part", parent_course_id=parent.id)
        course_factory(title="Draft part", parent_course_id=parent.id, status=CourseStatusEnum.DRAFT)
        db_session.refresh(parent)
        assert [c.id for c in course_service.published_subcourses(parent)] == [live.id]


class TestCourseAdministration:
    def test_instructor_becomes_course_instructor(self, db_session, instructor):
        course = course_service.create_course(db_session, form=_form(), current_user_context=context_for(instructor))
        assert course.instructor_id == instructor.id
        assert course.status == CourseStatusEnum.DRAFT

    def test_admin_created_course_has_no_instructor(self, db_session, admin):
        course = course_service.create_course(db_session, form=_form(), current_user_context=context_for(admin))
        assert course.instructor_id is None

    def test_duplicate_slug(self, db_session, course_factory, admin):
        course_factory(slug="intro-to-testing")
        with pytest.raises(ValidationFailed) as exc:
            course_service.create_course(db_session, form=_form(), current_user_context=context_for(admin))
        assert "slug" in exc.value.errors

    def test_unchanged_slug_is_not_rechecked(self, db_session, course_factory):
        course = course_factory(slug="intro-to-testing")
        updated = course_service.update_course(db_session, course_id=course.id, form=_form(title="Renamed"))
        assert updated.title == "Renamed"

    def test_course_cannot_be_its_own_parent(self, db_session, course_factory):
        course = course_factory(slug="intro-to-testing")
        with pytest.raises(ValidationFailed) as exc:
            course_service.update_course(db_session, course_id=course.id, form=_form(parent_course_id=course.id))
        assert "parent_course_id" in exc.value.errors

    def test_parent_cycle_rejected(self, db_session, course_factory):
        root = course_factory(title="Root", slug="intro-to-testing")
        child = course_factory(title="Child", parent_course_id=root.id)
        grandchild = course_factory(title="Grandchild", parent_course_id=child.id)

        with pytest.raises(ValidationFailed) as exc:
            course_service.update_course(db_session, course_id=root.id, form=_form(parent_course_id=grandchild.id))
        assert "cycle" in exc.value.errors["parent_course_id"]

        choices = {c.id for c in course_service.parent_choices(db_session, course=root)}
        assert choices.isdisjoint({root.id, child.id, grandchild.id})

    def test_instructor_must_have_staff_role(self, db_session, student, admin):
        with pytest.raises(ValidationFailed) as exc:
            course_service.create_course(
                db_session, form=_form(instructor_id=student.id), current_user_context=context_for(admin)
            )
        assert "instructor_id" in exc.value.errors

    def test_delete_cascades_and_detaches_subcourses(
        self, db_session, course_factory, module_factory, lesson_factory, student
    ):
        course = course_factory()
        lesson_factory(module_factory(course))
        child = course_factory(title="Child", parent_course_id=course.id)
        enrollment_service.enroll(db_session, course_id=course.id, current_user_context=context_for(student))

        course_service.delete_course(db_session, course_id=course.id)

        assert crud_course.get(db_session, id=course.id) is None
        assert db_session.query(Module).count() == 0
        assert db_session.query(Lesson).count() == 0
        db_session.refresh(child)
        assert child.parent_course_id is None


class TestCourseStats:
    def test_instructor_sees_own_courses(self, db_session, course_factory, module_factory, lesson_factory, instructor, student):
        own = course_factory(title="Mine", instructor_id=instructor.id)
        lesson_factory(module_factory(own))
        course_factory(title="Someone else's")
        enrollment_service.enroll(db_session, course_id=own.id, current_user_context=context_for(student))

        stats = course_service.course_stats(db_session, current_user_context=context_for(instructor))
        assert len(stats) == 1
        assert stats[0].course_id == own.id
        assert stats[0].enrollments == 1
        assert stats[0].modules == 1
        assert stats[0].published_lessons == 1

    def test_admin_sees_all_courses(self, db_session, course_factory, admin, user_factory):
        course_factory(title="One", instructor_id=user_factory(RoleEnum.INSTRUCTOR).id)
        course_factory(title="Two")
        stats = course_service.course_stats(db_session, current_user_context=context_for(admin))
        assert len(stats) == 2
