"""Attempt ledger: recording and reading student answers."""
import logging
from datetime import datetime, UTC
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vocabquiz import monitoring
from vocabquiz.exceptions import NotFound
from vocabquiz.models.models import Attempt, Exercise, User


logger = logging.getLogger(__name__)


def as_utc(moment: Optional[datetime] = None) -> datetime:
    """Convert a timestamp to UTC. Naive timestamps are taken to be UTC already."""
    if moment is None:
        return datetime.now(UTC)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


class AttemptService:
    """Append-only access to the attempt ledger."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    @staticmethod
    def check_answer(exercise: Exercise, selected_answer: str) -> bool:
        """Check a selected option against the exercise's correct answer."""
        return exercise.correct_answer == selected_answer

    def append_attempt(
        self,
        student_id: int,
        exercise_id: int,
        selected_answer: str,
        time_spent_seconds: Optional[int] = None,
        attempt_time: Optional[datetime] = None,
    ) -> Attempt:
        """Record a student's answer. Correctness is decided here and never again."""
        student = self.db.query(User).filter(User.id == student_id).first()
        if not student:
            raise NotFound("User", student_id)
        exercise = self.db.query(Exercise).filter(Exercise.id == exercise_id).first()
        if not exercise:
            raise NotFound("Exercise", exercise_id)

        attempt = Attempt(
            user_id=student.id,
            exercise_id=exercise.id,
            selected_answer=selected_answer,
            is_correct=self.check_answer(exercise, selected_answer),
            attempt_time=as_utc(attempt_time),
            time_spent_seconds=time_spent_seconds,
        )
        try:
            self.db.add(attempt)
            self.db.commit()
        except SQLAlchemyError:
            logger.exception(f"Failed to record attempt of user {student_id} on exercise {exercise_id}")
            self.db.rollback()
            raise
        self.db.refresh(attempt)

        monitoring.attempts_recorded.labels(result="correct" if attempt.is_correct else "wrong").inc()
        logger.debug(
            f"User {student_id} answered exercise {exercise_id}: "
            f"{'correct' if attempt.is_correct else 'wrong'}"
        )
        return attempt

    def list_attempts_by_student(self, student_id: int) -> List[Attempt]:
        """Get all attempts of a student in the order they were made."""
        return (
            self.db.query(Attempt)
            .filter(Attempt.user_id == student_id)
            .order_by(Attempt.attempt_time, Attempt.id)
            .all()
        )

    def list_attempts_for_module(self, student_id: int, module_id: int) -> List[Attempt]:
        """Get a student's attempts on the exercises of one module."""
        return (
            self.db.query(Attempt)
            .join(Exercise, Attempt.exercise_id == Exercise.id)
            .filter(
                Attempt.user_id == student_id,
                Exercise.module_id == module_id,
            )
            .order_by(Attempt.attempt_time, Attempt.id)
            .all()
        )

    def exists_correct_attempt(self, student_id: int, exercise_id: int) -> bool:
        """Check whether the student has ever answered the exercise correctly."""
        return (
            self.db.query(Attempt.id)
            .filter(
                Attempt.user_id == student_id,
                Attempt.exercise_id == exercise_id,
                Attempt.is_correct == True,
            )
            .first()
        ) is not None

    def _count_query(self, student_id: Optional[int], group_id: Optional[int]):
        query = self.db.query(Attempt)
        if student_id is not None:
            query = query.filter(Attempt.user_id == student_id)
        if group_id is not None:
            query = query.join(User, Attempt.user_id == User.id).filter(User.group_id == group_id)
        return query

    def count_attempts(self, student_id: Optional[int] = None, group_id: Optional[int] = None) -> int:
        """Count attempts, optionally for one student and/or one group."""
        return self._count_query(student_id, group_id).count()

    def count_correct_attempts(
        self, student_id: Optional[int] = None, group_id: Optional[int] = None
    ) -> int:
        """Count correct attempts, optionally for one student and/or one group."""
        return self._count_query(student_id, group_id).filter(Attempt.is_correct == True).count()
