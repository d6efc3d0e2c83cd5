"""Database models for the exercise engine."""
from datetime import datetime, UTC
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
)
from sqlalchemy.orm import relationship

from vocabquiz.models.base import Base, TimestampMixin


class UserRole(str, Enum):
    """Roles a user can have."""
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"


class QuestionDirection(str, Enum):
    """Language the question is asked in and the language of the answer."""
    ENGLISH_TO_RUSSIAN = "en_ru"  # English prompt, Russian options
    RUSSIAN_TO_ENGLISH = "ru_en"  # Russian prompt, English options


group_modules = Table(
    "group_modules",
    Base.metadata,
    Column("group_id", Integer, ForeignKey("study_groups.id"), primary_key=True),
    Column("module_id", Integer, ForeignKey("modules.id"), primary_key=True),
)


class User(Base, TimestampMixin):
    """User model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False)
    role = Column(String, nullable=False, default=UserRole.STUDENT.value)
    group_id = Column(Integer, ForeignKey("study_groups.id"), nullable=True)

    # Relationships
    group = relationship("Group", back_populates="students", foreign_keys=[group_id])
    taught_groups = relationship(
        "Group", back_populates="teacher", foreign_keys="Group.teacher_id"
    )
    modules = relationship("Module", back_populates="owner")
    attempts = relationship("Attempt", back_populates="user")

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT.value


class Group(Base, TimestampMixin):
    """Study group model."""

    __tablename__ = "study_groups"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Relationships
    teacher = relationship("User", back_populates="taught_groups", foreign_keys=[teacher_id])
    students = relationship("User", back_populates="group", foreign_keys=[User.group_id])
    assigned_modules = relationship("Module", secondary=group_modules, back_populates="groups")


class Module(Base, TimestampMixin):
    """Vocabulary module model."""

    __tablename__ = "modules"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(String)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Relationships
    owner = relationship("User", back_populates="modules")
    words = relationship("Word", back_populates="module", cascade="all, delete-orphan")
    exercises = relationship("Exercise", back_populates="module", cascade="all, delete-orphan")
    groups = relationship("Group", secondary=group_modules, back_populates="assigned_modules")


class Word(Base, TimestampMixin):
    """Word model."""

    __tablename__ = "words"

    id = Column(Integer, primary_key=True)
    english = Column(String, nullable=False)
    russian = Column(String, nullable=False)
    module_id = Column(Integer, ForeignKey("modules.id"), nullable=False)

    # Relationships
    module = relationship("Module", back_populates="words")

    def translation(self, direction: QuestionDirection) -> str:
        """Get the answer-side text of this word for the given direction."""
        if direction == QuestionDirection.ENGLISH_TO_RUSSIAN:
            return self.russian
        return self.english

    def prompt(self, direction: QuestionDirection) -> str:
        """Get the question-side text of this word for the given direction."""
        if direction == QuestionDirection.ENGLISH_TO_RUSSIAN:
            return self.english
        return self.russian


class Exercise(Base, TimestampMixin):
    """Multiple-choice exercise model. Never mutated after creation."""

    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True)
    module_id = Column(Integer, ForeignKey("modules.id"), nullable=False, index=True)
    direction = Column(String, nullable=False)
    question = Column(String, nullable=False)
    correct_answer = Column(String, nullable=False)
    option_1 = Column(String, nullable=False)
    option_2 = Column(String, nullable=False)
    option_3 = Column(String, nullable=False)
    option_4 = Column(String, nullable=False)

    # Relationships
    module = relationship("Module", back_populates="exercises")
    # Ledger rows are never touched when an exercise is deleted
    attempts = relationship("Attempt", back_populates="exercise", passive_deletes="all")

    @property
    def options(self) -> list[str]:
        return [self.option_1, self.option_2, self.option_3, self.option_4]


class Attempt(Base):
    """Student answer model. Append-only."""

    __tablename__ = "attempts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    exercise_id = Column(Integer, ForeignKey("exercises.id"), nullable=False, index=True)
    selected_answer = Column(String, nullable=False)
    is_correct = Column(Boolean, nullable=False)  # fixed at write time
    attempt_time = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    time_spent_seconds = Column(Integer, nullable=True)

    # Relationships
    user = relationship("User", back_populates="attempts")
    exercise = relationship("Exercise", back_populates="attempts")
