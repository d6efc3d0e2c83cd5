"""Progress evaluation: module completion for a student."""
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Set

from sqlalchemy.orm import Session

from vocabquiz import monitoring
from vocabquiz.models.models import Attempt, Exercise, Module
from vocabquiz.models.stats_models import ModuleProgress
from vocabquiz.services.attempt_service import AttemptService
from vocabquiz.services.user_service import UserService

logger = logging.getLogger(__name__)


class ProgressService:
    """Derives module progress from exercises and the attempt ledger.

    A module is complete for a student when every one of its exercises has at
    least one correct attempt by that student, at any point in the ledger. A
    module without exercises is never complete. Nothing is cached: every call
    reads the ledger as committed at that moment.
    """

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db
        self.attempt_service = AttemptService(db)
        self.user_service = UserService(db)

    def _exercise_ids_by_module(self, module_ids: Iterable[int]) -> Dict[int, List[int]]:
        module_ids = list(module_ids)
        exercise_ids = defaultdict(list)
        if not module_ids:
            return exercise_ids

        rows = (
            self.db.query(Exercise.module_id, Exercise.id)
            .filter(Exercise.module_id.in_(module_ids))
            .all()
        )
        for module_id, exercise_id in rows:
            exercise_ids[module_id].append(exercise_id)
        return exercise_ids

    def _solved_exercise_ids(self, student_id: int, exercise_ids: Sequence[int]) -> Set[int]:
        """IDs among ``exercise_ids`` the student has answered correctly at least once."""
        if not exercise_ids:
            return set()

        rows = (
            self.db.query(Attempt.exercise_id)
            .filter(
                Attempt.user_id == student_id,
                Attempt.exercise_id.in_(exercise_ids),
                Attempt.is_correct == True,
            )
            .distinct()
            .all()
        )
        return {exercise_id for (exercise_id,) in rows}

    def module_progress(self, student_id: int, module_id: int) -> ModuleProgress:
        """Get how many of the module's exercises the student has solved."""
        with monitoring.stats_query_duration.labels(query="module_progress").time():
            exercise_ids = self._exercise_ids_by_module([module_id])[module_id]
            solved = self._solved_exercise_ids(student_id, exercise_ids)

        return ModuleProgress(
            student_id=student_id,
            module_id=module_id,
            completed_exercise_count=len(solved),
            total_exercise_count=len(exercise_ids),
        )

    def is_module_complete(self, student_id: int, module_id: int) -> bool:
        """Check whether every exercise of the module has a correct attempt."""
        return self.module_progress(student_id, module_id).is_complete

    def module_progress_percent(self, student_id: int, module_id: int) -> float:
        """Get the share of the module's exercises solved, from 0.0 to 100.0."""
        return self.module_progress(student_id, module_id).percent_complete

    def completed_module_count(
        self, student_id: int, available_modules: Optional[Sequence[Module]] = None
    ) -> int:
        """Count complete modules among those available to the student.

        When ``available_modules`` is not given, the modules assigned to the
        student's group are used. The ledger is read once for all modules.
        """
        if available_modules is None:
            available_modules = self.user_service.list_modules_for_student(student_id)

        with monitoring.stats_query_duration.labels(query="completed_module_count").time():
            exercise_ids = self._exercise_ids_by_module(module.id for module in available_modules)
            solved = self._solved_exercise_ids(
                student_id, [eid for ids in exercise_ids.values() for eid in ids]
            )

        completed = 0
        for module in available_modules:
            ids = exercise_ids.get(module.id)
            if ids and all(eid in solved for eid in ids):
                completed += 1
        logger.debug(f"User {student_id} completed {completed} of {len(available_modules)} modules")
        return completed

    def list_module_progress(self, student_id: int) -> List[ModuleProgress]:
        """Get progress for every module available to the student."""
        modules = self.user_service.list_modules_for_student(student_id)
        exercise_ids = self._exercise_ids_by_module(module.id for module in modules)
        solved = self._solved_exercise_ids(
            student_id, [eid for ids in exercise_ids.values() for eid in ids]
        )
        return [
            ModuleProgress(
                student_id=student_id,
                module_id=module.id,
                completed_exercise_count=sum(1 for eid in exercise_ids.get(module.id, []) if eid in solved),
                total_exercise_count=len(exercise_ids.get(module.id, [])),
            )
            for module in modules
        ]

    def student_success_rate(self, student_id: int) -> float:
        """Unrounded percentage of the student's attempts that were correct."""
        total = self.attempt_service.count_attempts(student_id=student_id)
        if total == 0:
            return 0.0
        correct = self.attempt_service.count_correct_attempts(student_id=student_id)
        return correct / total * 100
