from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import CourseLevelEnum, CourseStatusEnum, EnrollmentTypeEnum

class CourseCategory(Base):
    __tablename__ = "course_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    courses = relationship("Course", back_populates="category")

class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    parent_course_id = Column(Integer, ForeignKey("courses.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(255), index=True, nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
    difficulty = Column(Enum(CourseLevelEnum), nullable=False, default=CourseLevelEnum.BEGINNER)
    status = Column(Enum(CourseStatusEnum), nullable=False, default=CourseStatusEnum.DRAFT, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    category_id = Column(Integer, ForeignKey("course_categories.id", ondelete="SET NULL"), nullable=True, index=True)
    instructor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    enrollment_type = Column(Enum(EnrollmentTypeEnum), nullable=False, default=EnrollmentTypeEnum.OPEN, index=True)
    is_free = Column(Boolean, nullable=False, default=True)
    is_self_paced = Column(Boolean, nullable=False, default=True)
    capacity = Column(Integer, nullable=True)  # null = unlimited
    syllabus = Column(Text, nullable=True)
    tags = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    parent = relationship("Course", remote_side=[id], back_populates="subcourses")
    subcourses = relationship("Course", back_populates="parent", order_by="Course.sort_order")
    category = relationship("CourseCategory", back_populates="courses")
    instructor = relationship("User", back_populates="teaching_courses")
    modules = relationship("Module", back_populates="course", cascade="all, delete-orphan", order_by="Module.sort_order")
    enrollments = relationship("Enrollment", back_populates="course", cascade="all, delete-orphan")

    @property
    def is_published(self) -> bool:
        return self.status == CourseStatusEnum.PUBLISHED

    @property
    def tag_list(self):
        if not self.tags:
            return []
        return [t.strip() for t in self.tags.split(",") if t.strip()]
