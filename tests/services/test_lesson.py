import pytest

from app.core.constants import ContentBlockTypeEnum, LessonStatusEnum, LessonTypeEnum, ProgressStatusEnum
from app.core.exceptions import NotFoundError, ValidationFailed
from app.crud.user_progress import user_progress as crud_progress
from app.models.course import Course
from app.schemas.lesson import LessonForm
from app.schemas.module import ModuleForm
from app.services.course import course_service
from app.services.course_progress import course_progress_service
from app.services.lesson import lesson_service
from app.services.module import module_service
from app.services.rendering import markdown_renderer
from tests.helpers.auth import context_for


class TestNavigation:
    def test_first_lesson_has_no_previous(self, db_session, course_tree):
        l1, l2, _ = course_tree["lessons"]
        nav = lesson_service.get_navigation(db_session, course_id=course_tree["course"].id, lesson_id=l1.id)
        assert nav.previous is None
        assert nav.next.id == l2.id

    def test_last_lesson_has_no_next(self, db_session, course_tree):
        _, l2, l3 = course_tree["lessons"]
        nav = lesson_service.get_navigation(db_session, course_id=course_tree["course"].id, lesson_id=l3.id)
        assert nav.previous.id == l2.id
        assert nav.next is None

    def test_crosses_module_boundary(self, db_session, course_tree):
        l1, l2, l3 = course_tree["lessons"]
        nav = lesson_service.get_navigation(db_session, course_id=course_tree["course"].id, lesson_id=l2.id)
        assert nav.previous.id == l1.id
        assert nav.next.id == l3.id
        assert nav.next.url == f"/courses/{l3.course_id}/modules/{l3.module_id}/lessons/{l3.id}"

    def test_draft_lessons_are_skipped(self, db_session, course_tree, lesson_factory):
        l1, l2, _ = course_tree["lessons"]
        lesson_factory(course_tree["modules"][0], title="Hidden", sort_order=1, status=LessonStatusEnum.DRAFT)
        nav = lesson_service.get_navigation(db_session, course_id=course_tree["course"].id, lesson_id=l2.id)
        assert nav.previous.id == l1.id

    def test_module_order_wins_over_lesson_order(self, db_session, course_factory, module_factory, lesson_factory):
        course = course_factory()
        later = module_factory(course, title="Later", sort_order=5)
        earlier = module_factory(course, title="Earlier", sort_order=1)
        a = lesson_factory(later, title="A", sort_order=0)
        b = lesson_factory(earlier, title="B", sort_order=9)
        nav = lesson_service.get_navigation(db_session, course_id=course.id, lesson_id=b.id)
        assert nav.previous is None
        assert nav.next.id == a.id


class TestViewLesson:
    def test_records_access(self, db_session, course_tree, student):
        l1 = course_tree["lessons"][0]
        view = lesson_service.view_lesson(
            db_session,
            course_id=l1.course_id,
            module_id=l1.module_id,
            lesson_id=l1.id,
            current_user_context=context_for(student),
        )
        assert view["lesson"].id == l1.id
        assert view["progress"].status == ProgressStatusEnum.IN_PROGRESS
        assert view["progress"].last_accessed_at is not None
        assert view["is_completed"] is False
        assert view["is_bookmarked"] is False
        assert view["navigation"].next.id == course_tree["lessons"][1].id

    def test_lesson_must_belong_to_module(self, db_session, course_tree, student):
        l3 = course_tree["lessons"][2]
        m1 = course_tree["modules"][0]
        with pytest.raises(NotFoundError):
            lesson_service.view_lesson(
                db_session,
                course_id=l3.course_id,
                module_id=m1.id,
                lesson_id=l3.id,
                current_user_context=context_for(student),
            )

    def test_draft_lesson_hidden_from_students(self, db_session, course_tree, lesson_factory, student, instructor):
        module = course_tree["modules"][0]
        draft = lesson_factory(module, title="Draft", status=LessonStatusEnum.DRAFT)
        kwargs = dict(course_id=draft.course_id, module_id=module.id, lesson_id=draft.id)

        with pytest.raises(NotFoundError):
            lesson_service.get_course_lesson(db_session, current_user_context=context_for(student), **kwargs)
        assert lesson_service.get_course_lesson(db_session, current_user_context=context_for(instructor), **kwargs).id == draft.id

    def test_markdown_lesson_is_rendered(self, db_session, course_tree, lesson_factory):
        lesson = lesson_factory(
            course_tree["modules"][0],
            title="Markdown",
            content_type=LessonTypeEnum.MARKDOWN,
            content="# Title\n\nSome **bold** text",
        )
        html = lesson_service.render_content(lesson)
        assert "<h1>Title</h1>" in html
        assert "<strong>bold</strong>" in html

    def test_plain_lesson_is_not_rendered(self, course_tree):
        assert lesson_service.render_content(course_tree["lessons"][0]) is None


class TestMarkdownRenderer:
    def test_raw_html_is_escaped(self):
        html = markdown_renderer.render("Hello <script>alert(1)</script>")
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_newlines_become_breaks(self):
        assert "<br" in markdown_renderer.render("line one\nline two")

    def test_fenced_code(self):
        html = markdown_renderer.render("```python\nprint('hi')\n```")
        assert "<code" in html

    def test_empty_text(self):
        assert markdown_renderer.render(None) == ""


class TestLessonAdministration:
    def _form(self, module, **overrides):
        data = {
            "module_id": module.id,
            "title": "Loops and Ranges",
            "status": "published",
            "content_blocks": [
                {"block_type": "text", "content": "Intro **text**"},
                {"block_type": "code", "content": "for i in range(3):\n    print(i)", "code_language": "python"},
                {"block_type": "text", "content": "   "},
            ],
        }
        data.update(overrides)
        return LessonForm.model_validate(data)

    def test_create_derives_course_and_slug(self, db_session, course_tree):
        module = course_tree["modules"][1]
        lesson = lesson_service.create_lesson(db_session, form=self._form(module))

        assert lesson.course_id == module.course_id
        assert lesson.slug == "loops-and-ranges"
        assert [b.block_type for b in lesson.content_blocks] == [ContentBlockTypeEnum.TEXT, ContentBlockTypeEnum.CODE]
        assert [b.sort_order for b in lesson.content_blocks] == [0, 1]

    def test_update_replaces_blocks_and_follows_module(self, db_session, course_tree, course_factory, module_factory):
        lesson = lesson_service.create_lesson(db_session, form=self._form(course_tree["modules"][0]))
        other_module = module_factory(course_factory(title="Elsewhere"))

        updated = lesson_service.update_lesson(
            db_session,
            lesson_id=lesson.id,
            form=self._form(other_module, content_blocks=[{"block_type": "video", "content": "https://video"}]),
        )
        assert updated.course_id == other_module.course_id
        assert len(updated.content_blocks) == 1
        assert updated.content_blocks[0].block_type == ContentBlockTypeEnum.VIDEO

    def test_render_blocks(self, db_session, course_tree):
        lesson = lesson_service.create_lesson(db_session, form=self._form(course_tree["modules"][0]))
        blocks = lesson_service.render_blocks(lesson)
        assert "<strong>text</strong>" in blocks[0]["html"]
        assert blocks[1]["html"] is None
        assert blocks[1]["code_language"] == "python"

    def test_unknown_module(self, db_session, course_tree):
        form = self._form(course_tree["modules"][0], module_id=99999)
        with pytest.raises(ValidationFailed) as exc:
            lesson_service.create_lesson(db_session, form=form)
        assert "module_id" in exc.value.errors


class TestMovingKeepsProgress:
    def _complete(self, db_session, lesson, user):
        course_progress_service.mark_lesson_complete(db_session, lesson_id=lesson.id, current_user_context=context_for(user))
        return crud_progress.get_by_user_and_lesson(db_session, user_id=user.id, lesson_id=lesson.id).id

    def test_lesson_moved_out_of_deleted_module(self, db_session, sqlite_foreign_keys, course_tree, student):
        l1 = course_tree["lessons"][0]
        m1, m2 = course_tree["modules"]
        m1_id, m2_id = m1.id, m2.id
        progress_id = self._complete(db_session, l1, student)

        form = LessonForm.model_validate({"module_id": m2_id, "title": "Hello World", "status": "published"})
        lesson_service.update_lesson(db_session, lesson_id=l1.id, form=form)
        module_service.delete_module(db_session, module_id=m1_id)
        db_session.expire_all()

        progress = crud_progress.get(db_session, id=progress_id)
        assert progress is not None
        assert progress.module_id == m2_id
        assert progress.status == ProgressStatusEnum.COMPLETED

    def test_module_moved_out_of_deleted_course(
        self, db_session, sqlite_foreign_keys, course_tree, course_factory, student
    ):
        old_course_id = course_tree["course"].id
        m2 = course_tree["modules"][1]
        l3 = course_tree["lessons"][2]
        progress_id = self._complete(db_session, l3, student)
        target = course_factory(title="Python Control Flow")
        target_id = target.id

        form = ModuleForm.model_validate({"course_id": target_id, "title": "Control Flow", "sort_order": 1})
        module_service.update_module(db_session, module_id=m2.id, form=form)
        course_service.delete_course(db_session, course_id=old_course_id)
        db_session.expire_all()

        assert db_session.get(Course, old_course_id) is None
        progress = crud_progress.get(db_session, id=progress_id)
        assert progress is not None
        assert progress.course_id == target_id
        assert progress.lesson.course_id == target_id
