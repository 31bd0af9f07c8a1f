from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import LessonStatusEnum, LessonTypeEnum, ContentBlockTypeEnum

class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, index=True)
    module_id = Column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True)
    # Mirrors module.course_id; kept in sync by the lesson service
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), index=True, nullable=False)
    slug = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    code_examples = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    status = Column(Enum(LessonStatusEnum), nullable=False, default=LessonStatusEnum.DRAFT)
    content_type = Column(Enum(LessonTypeEnum), nullable=False, default=LessonTypeEnum.TEXT)
    featured_image = Column(String(500), nullable=True)
    estimated_time = Column(Integer, nullable=True)  # minutes
    objectives = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    module = relationship("Module", back_populates="lessons")
    course = relationship("Course")
    exercises = relationship("Exercise", back_populates="lesson", cascade="all, delete-orphan", order_by="Exercise.sort_order")
    content_blocks = relationship("LessonContent", back_populates="lesson", cascade="all, delete-orphan", order_by="LessonContent.sort_order")
    progress_records = relationship("UserProgress", back_populates="lesson", cascade="all, delete-orphan")
    bookmarks = relationship("Bookmark", back_populates="lesson", cascade="all, delete-orphan")

    @property
    def is_published(self) -> bool:
        return self.status == LessonStatusEnum.PUBLISHED

class LessonContent(Base):
    __tablename__ = "lesson_content"

    id = Column(Integer, primary_key=True, index=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True)
    block_type = Column(Enum(ContentBlockTypeEnum), nullable=False, default=ContentBlockTypeEnum.TEXT)
    content = Column(Text, nullable=False)
    code_language = Column(String(50), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lesson = relationship("Lesson", back_populates="content_blocks")
