"""Models for derived progress and statistics data.

None of these are persisted; they are computed on demand from exercises and
the attempt ledger.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


def success_rate_percent(correct_attempts: int, total_attempts: int) -> float:
    """Percentage of correct attempts rounded half-up to a whole number.

    Returns 0.0 when there are no attempts, so 2 of 3 gives 67.0 and
    1 of 8 (12.5%) gives 13.0.
    """
    if total_attempts <= 0:
        return 0.0
    # Integer arithmetic keeps the .5 boundary exact
    return float((200 * correct_attempts + total_attempts) // (2 * total_attempts))


@dataclass
class ModuleProgress:
    """Progress of one student through one module."""
    student_id: int
    module_id: int
    completed_exercise_count: int
    total_exercise_count: int

    @property
    def percent_complete(self) -> float:
        if self.total_exercise_count == 0:
            return 0.0
        return self.completed_exercise_count / self.total_exercise_count * 100

    @property
    def is_complete(self) -> bool:
        return (
            self.total_exercise_count > 0
            and self.completed_exercise_count == self.total_exercise_count
        )


@dataclass
class StudentStats:
    """Per-student row used by student, group and teacher reports."""
    student_id: int
    student_name: Optional[str] = None
    group_id: Optional[int] = None
    group_name: Optional[str] = None
    total_attempts: int = 0
    correct_attempts: int = 0
    last_activity: Optional[datetime] = None
    modules_attempted: int = 0
    modules_completed: int = 0

    @property
    def success_rate_percent(self) -> float:
        return success_rate_percent(self.correct_attempts, self.total_attempts)


@dataclass
class GroupStats:
    """Attempt totals for a whole group."""
    group_id: int
    total_attempts: int = 0
    correct_attempts: int = 0

    @property
    def success_rate_percent(self) -> float:
        return success_rate_percent(self.correct_attempts, self.total_attempts)


@dataclass
class AttemptDetail:
    """One row of a student's attempt history."""
    attempt_id: int
    module_title: str
    question: str
    selected_answer: str
    correct_answer: str
    is_correct: bool
    attempt_time: datetime
    time_spent_seconds: Optional[int] = None
