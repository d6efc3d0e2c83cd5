"""Statistics over the attempt ledger for students, groups and teachers."""
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from vocabquiz import monitoring
from vocabquiz.config import StatsSettings, settings
from vocabquiz.models.models import Attempt, Exercise, Group, Module, User, UserRole
from vocabquiz.models.stats_models import AttemptDetail, GroupStats, StudentStats
from vocabquiz.services.progress_service import ProgressService
from vocabquiz.services.user_service import UserService

logger = logging.getLogger(__name__)


class StatsService:
    """Read-only reports built from the attempt ledger.

    Per-student rows are an outer join over students, so students without any
    attempts still appear with zero counts. ``modules_completed`` mirrors
    ``modules_attempted`` unless strict completion is enabled in the settings,
    in which case it is checked exercise by exercise with ProgressService.
    """

    def __init__(self, db: Session, stats_settings: Optional[StatsSettings] = None):
        """Initialize the service with a database session."""
        self.db = db
        self.settings = stats_settings or settings.stats
        self.progress_service = ProgressService(db)
        self.user_service = UserService(db)

    def _student_rows(self, *criteria) -> List[StudentStats]:
        """Attempt totals per student matching ``criteria``, without module counts."""
        correct_count = func.coalesce(func.sum(case((Attempt.is_correct == True, 1), else_=0)), 0)
        rows = (
            self.db.query(
                User.id,
                User.username,
                Group.id,
                Group.name,
                func.count(Attempt.id),
                correct_count,
                func.max(Attempt.attempt_time),
            )
            .outerjoin(Group, User.group_id == Group.id)
            .outerjoin(Attempt, Attempt.user_id == User.id)
            .filter(*criteria)
            .group_by(User.id, User.username, Group.id, Group.name)
            .order_by(Group.id, User.username)
            .all()
        )
        return [
            StudentStats(
                student_id=student_id,
                student_name=student_name,
                group_id=group_id,
                group_name=group_name,
                total_attempts=int(total or 0),
                correct_attempts=int(correct or 0),
                last_activity=last_activity,
            )
            for student_id, student_name, group_id, group_name, total, correct, last_activity in rows
        ]

    def _attempted_module_ids(self, student_ids: Iterable[int]) -> Dict[int, List[int]]:
        """Distinct modules each student has attempted at least one exercise of."""
        student_ids = list(student_ids)
        attempted = {student_id: [] for student_id in student_ids}
        if not student_ids:
            return attempted

        rows = (
            self.db.query(Attempt.user_id, Exercise.module_id)
            .join(Exercise, Attempt.exercise_id == Exercise.id)
            .filter(Attempt.user_id.in_(student_ids))
            .distinct()
            .all()
        )
        for student_id, module_id in rows:
            attempted[student_id].append(module_id)
        return attempted

    def _with_module_counts(self, stats: List[StudentStats]) -> List[StudentStats]:
        attempted = self._attempted_module_ids(stat.student_id for stat in stats)
        for stat in stats:
            module_ids = attempted.get(stat.student_id, [])
            stat.modules_attempted = len(module_ids)
            if self.settings.strict_module_completion:
                modules = self.db.query(Module).filter(Module.id.in_(module_ids)).all() if module_ids else []
                stat.modules_completed = self.progress_service.completed_module_count(
                    stat.student_id, modules
                )
            else:
                stat.modules_completed = stat.modules_attempted
        return stats

    def student_stats(self, student_id: int) -> StudentStats:
        """Get attempt totals and last activity for one student."""
        with monitoring.stats_query_duration.labels(query="student_stats").time():
            rows = self._student_rows(User.id == student_id)
            if not rows:
                return StudentStats(student_id=student_id)
            return self._with_module_counts(rows)[0]

    def group_stats(self, group_id: int) -> List[StudentStats]:
        """Get one row per student currently in the group."""
        with monitoring.stats_query_duration.labels(query="group_stats").time():
            rows = self._student_rows(
                User.group_id == group_id,
                User.role == UserRole.STUDENT.value,
            )
            return self._with_module_counts(rows)

    def teacher_stats(self, teacher_id: int, group_id: Optional[int] = None) -> List[StudentStats]:
        """Get per-student rows for one of the teacher's groups, or for all of them."""
        if group_id is not None:
            return self.group_stats(group_id)

        with monitoring.stats_query_duration.labels(query="teacher_stats").time():
            rows = self._student_rows(
                Group.teacher_id == teacher_id,
                User.role == UserRole.STUDENT.value,
            )
            return self._with_module_counts(rows)

    def group_aggregate_stats(self, group_id: int) -> GroupStats:
        """Sum the per-student attempt totals of a group."""
        with monitoring.stats_query_duration.labels(query="group_aggregate_stats").time():
            rows = self._student_rows(
                User.group_id == group_id,
                User.role == UserRole.STUDENT.value,
            )
        return GroupStats(
            group_id=group_id,
            total_attempts=sum(row.total_attempts for row in rows),
            correct_attempts=sum(row.correct_attempts for row in rows),
        )

    def detailed_stats(self, student_id: int) -> List[AttemptDetail]:
        """Get a student's attempt history, newest first."""
        rows = (
            self.db.query(
                Attempt.id,
                Module.title,
                Exercise.question,
                Attempt.selected_answer,
                Exercise.correct_answer,
                Attempt.is_correct,
                Attempt.attempt_time,
                Attempt.time_spent_seconds,
            )
            .join(Exercise, Attempt.exercise_id == Exercise.id)
            .join(Module, Exercise.module_id == Module.id)
            .filter(Attempt.user_id == student_id)
            .order_by(Attempt.attempt_time.desc(), Attempt.id.desc())
            .all()
        )
        return [AttemptDetail(*row) for row in rows]

    def teacher_groups(self, teacher_id: int) -> List[Group]:
        """Get the teacher's groups, e.g. for a group filter."""
        return self.user_service.list_groups_for_teacher(teacher_id)
