"""Multiple-choice exercise generation."""
import logging
import random
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vocabquiz import monitoring
from vocabquiz.config import (
    MIN_WORDS_PER_MODULE,
    OPTIONS_PER_EXERCISE,
    GenerationSettings,
    settings,
)
from vocabquiz.exceptions import InsufficientVocabulary, NoExercisesAvailable, NotFound
from vocabquiz.models.models import Exercise, Module, QuestionDirection, Word
from vocabquiz.services.word_service import WordService

logger = logging.getLogger(__name__)


class ExerciseGenerator:
    """Builds multiple-choice exercises from a module's words.

    The generator never touches the database; it only turns a word list into
    unsaved Exercise objects. All randomness comes from the injected ``rng`` so
    a seeded ``random.Random`` makes the output reproducible.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        generation_settings: Optional[GenerationSettings] = None,
    ):
        self.settings = generation_settings or settings.generation
        self.rng = rng or random.Random(self.settings.seed)

    def _question_text(self, word: Word, direction: QuestionDirection) -> str:
        if direction == QuestionDirection.ENGLISH_TO_RUSSIAN:
            template = self.settings.english_question_template
        else:
            template = self.settings.russian_question_template
        return template.format(word=word.prompt(direction))

    def build_exercise(self, module_id: int, word: Word, words: Sequence[Word]) -> Exercise:
        """Create one exercise for ``word`` using the other ``words`` as distractors."""
        direction = self.rng.choice(list(QuestionDirection))
        correct_answer = word.translation(direction)

        others = [other for other in words if other is not word]
        distractors = self.rng.sample(others, OPTIONS_PER_EXERCISE - 1)

        options = [correct_answer] + [other.translation(direction) for other in distractors]
        self.rng.shuffle(options)

        if len(set(options)) != len(options):
            logger.warning(
                f"Exercise for word {word.id} in module {module_id} has repeated options: {options}"
            )

        return Exercise(
            module_id=module_id,
            direction=direction.value,
            question=self._question_text(word, direction),
            correct_answer=correct_answer,
            option_1=options[0],
            option_2=options[1],
            option_3=options[2],
            option_4=options[3],
        )

    def generate(self, module: Module, words: Sequence[Word]) -> List[Exercise]:
        """Create one exercise per word. Nothing is built unless every word can be."""
        words = tuple(words)
        if len(words) < MIN_WORDS_PER_MODULE:
            raise InsufficientVocabulary(module.id, len(words), MIN_WORDS_PER_MODULE)

        return [self.build_exercise(module.id, word, words) for word in words]


class ExerciseService:
    """Service for generating and looking up a module's exercises."""

    def __init__(
        self,
        db: Session,
        generator: Optional[ExerciseGenerator] = None,
        regeneration_policy: Optional[str] = None,
    ):
        """Initialize the service with a database session."""
        self.db = db
        self.word_service = WordService(db)
        self.generator = generator or ExerciseGenerator()
        self.regeneration_policy = regeneration_policy or settings.generation.regeneration_policy

    def get_exercise(self, exercise_id: int) -> Optional[Exercise]:
        """Get an exercise by its ID."""
        return self.db.query(Exercise).filter(Exercise.id == exercise_id).first()

    def list_exercises_for_module(self, module_id: int) -> List[Exercise]:
        """Get all exercises of a module, oldest first."""
        return (
            self.db.query(Exercise)
            .filter(Exercise.module_id == module_id)
            .order_by(Exercise.id)
            .all()
        )

    def get_total_exercises_in_module(self, module_id: int) -> int:
        """Get the number of exercises a student can work through in a module."""
        return self.db.query(Exercise).filter(Exercise.module_id == module_id).count()

    def get_exercise_by_index(self, module_id: int, index: int) -> Optional[Exercise]:
        """Get the module's exercise at a zero-based position, or None past either end."""
        if index < 0:
            return None
        return (
            self.db.query(Exercise)
            .filter(Exercise.module_id == module_id)
            .order_by(Exercise.id)
            .offset(index)
            .first()
        )

    def get_random_exercise_for_module(self, module_id: int) -> Exercise:
        """Pick one of the module's exercises using the generator's random source.

        Raises:
            NoExercisesAvailable: the module has no exercises.
        """
        exercises = self.list_exercises_for_module(module_id)
        if not exercises:
            raise NoExercisesAvailable(module_id)
        return self.generator.rng.choice(exercises)

    def delete_exercise(self, exercise_id: int) -> bool:
        """Delete a single exercise. Its attempts stay in the ledger."""
        exercise = self.get_exercise(exercise_id)
        if not exercise:
            return False

        self.db.delete(exercise)
        self.db.commit()
        return True

    def generate_exercises(self, module_id: int) -> List[Exercise]:
        """Generate one exercise per word of the module and save them as one batch.

        With the ``append`` policy every call adds a full new set, so calling it
        twice doubles the module's exercises. With ``skip`` a module that already
        has exercises is left alone and an empty list is returned.

        Raises:
            NotFound: the module does not exist.
            InsufficientVocabulary: the module has fewer than four words.
        """
        module = self.word_service.get_module(module_id)
        if not module:
            monitoring.generation_failures.labels(reason="not_found").inc()
            raise NotFound("Module", module_id)

        if self.regeneration_policy == "skip" and self.get_total_exercises_in_module(module_id):
            logger.info(f"Module {module_id} already has exercises, skipping generation")
            return []

        words = self.word_service.list_words_for_module(module_id)
        try:
            exercises = self.generator.generate(module, words)
        except InsufficientVocabulary:
            monitoring.generation_failures.labels(reason="insufficient_vocabulary").inc()
            logger.warning(f"Module {module_id} has only {len(words)} words, no exercises generated")
            raise

        try:
            self.db.add_all(exercises)
            self.db.commit()
        except SQLAlchemyError:
            logger.exception(f"Failed to save exercises for module {module_id}")
            monitoring.generation_failures.labels(reason="storage").inc()
            self.db.rollback()
            raise

        monitoring.exercises_generated.inc(len(exercises))
        logger.info(f"Generated {len(exercises)} exercises for module {module_id}")
        return exercises
