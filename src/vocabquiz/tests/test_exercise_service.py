"""Tests for exercise generation."""
import random
from collections import Counter

import pytest
from prometheus_client import REGISTRY
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vocabquiz.exceptions import InsufficientVocabulary, NoExercisesAvailable, NotFound
from vocabquiz.models.models import Exercise, Module, QuestionDirection, Word
from vocabquiz.services.exercise_service import ExerciseGenerator, ExerciseService

RUSSIAN = {"кот", "собака", "птица", "рыба"}
ENGLISH = {"cat", "dog", "bird", "fish"}


@pytest.fixture
def exercise_service(db: Session) -> ExerciseService:
    """Create an exercise service with a seeded generator."""
    return ExerciseService(db, generator=ExerciseGenerator(random.Random(7)))


def _unsaved_words(count: int):
    return [Word(id=i, english=f"word{i}", russian=f"слово{i}", module_id=1) for i in range(count)]


def test_generate_one_exercise_per_word(exercise_service: ExerciseService, animals_module: Module) -> None:
    """Test that every word gets exactly one well-formed exercise."""
    exercises = exercise_service.generate_exercises(animals_module.id)

    assert len(exercises) == 4
    stored = exercise_service.list_exercises_for_module(animals_module.id)
    assert len(stored) == 4

    for exercise in stored:
        options = exercise.options
        assert len(options) == 4
        assert len(set(options)) == 4
        assert options.count(exercise.correct_answer) == 1
        if exercise.direction == QuestionDirection.ENGLISH_TO_RUSSIAN.value:
            assert set(options) == RUSSIAN
            assert exercise.question.startswith("What is the translation of: ")
        else:
            assert set(options) == ENGLISH
            assert exercise.question.startswith("Как переводится: ")


def test_question_matches_correct_answer(exercise_service: ExerciseService, animals_module: Module) -> None:
    """Test that the prompt word and the correct answer are the same pair."""
    pairs = {"cat": "кот", "dog": "собака", "bird": "птица", "fish": "рыба"}
    exercise_service.generate_exercises(animals_module.id)

    for exercise in exercise_service.list_exercises_for_module(animals_module.id):
        prompt = exercise.question.split(": ", 1)[1].rstrip("?")
        if exercise.direction == QuestionDirection.ENGLISH_TO_RUSSIAN.value:
            assert pairs[prompt] == exercise.correct_answer
        else:
            assert pairs[exercise.correct_answer] == prompt


def test_each_word_is_asked_once(exercise_service: ExerciseService, animals_module: Module) -> None:
    """Test that the correct answers cover each word exactly once."""
    exercise_service.generate_exercises(animals_module.id)

    english_of = {"кот": "cat", "собака": "dog", "птица": "bird", "рыба": "fish"}
    answered = [
        english_of.get(exercise.correct_answer, exercise.correct_answer)
        for exercise in exercise_service.list_exercises_for_module(animals_module.id)
    ]
    assert sorted(answered) == sorted(ENGLISH)


def test_insufficient_vocabulary(db: Session, exercise_service: ExerciseService, make_module) -> None:
    """Test that a module with three words gets no exercises at all."""
    module = make_module([("cat", "кот"), ("dog", "собака"), ("bird", "птица")])

    with pytest.raises(InsufficientVocabulary) as exc_info:
        exercise_service.generate_exercises(module.id)

    assert exc_info.value.module_id == module.id
    assert exc_info.value.word_count == 3
    assert exc_info.value.required == 4
    assert db.query(Exercise).count() == 0


def test_empty_module_is_insufficient(db: Session, exercise_service: ExerciseService, make_module) -> None:
    """Test that a module without words is rejected."""
    module = make_module([])

    with pytest.raises(InsufficientVocabulary):
        exercise_service.generate_exercises(module.id)
    assert db.query(Exercise).count() == 0


def test_generate_missing_module(exercise_service: ExerciseService) -> None:
    """Test that generating for an unknown module raises NotFound."""
    with pytest.raises(NotFound) as exc_info:
        exercise_service.generate_exercises(999)
    assert exc_info.value.entity == "Module"
    assert exc_info.value.entity_id == 999


def test_regeneration_appends_a_second_set(exercise_service: ExerciseService, animals_module: Module) -> None:
    """Test that generating twice doubles the exercises instead of replacing them."""
    exercise_service.generate_exercises(animals_module.id)
    exercise_service.generate_exercises(animals_module.id)

    assert exercise_service.get_total_exercises_in_module(animals_module.id) == 8


def test_skip_policy_keeps_existing_exercises(db: Session, animals_module: Module) -> None:
    """Test that the skip policy leaves a module with exercises alone."""
    service = ExerciseService(db, generator=ExerciseGenerator(random.Random(1)), regeneration_policy="skip")

    first = service.generate_exercises(animals_module.id)
    second = service.generate_exercises(animals_module.id)

    assert len(first) == 4
    assert second == []
    assert service.get_total_exercises_in_module(animals_module.id) == 4


def test_storage_failure_propagates(db: Session, exercise_service: ExerciseService, animals_module: Module, mocker) -> None:
    """Test that a failing commit is rolled back and re-raised unchanged."""
    error = SQLAlchemyError("disk full")
    mocker.patch.object(db, "commit", side_effect=error)
    rollback = mocker.spy(db, "rollback")

    with pytest.raises(SQLAlchemyError) as exc_info:
        exercise_service.generate_exercises(animals_module.id)

    assert exc_info.value is error
    rollback.assert_called_once()


def test_generation_metrics(exercise_service: ExerciseService, animals_module: Module) -> None:
    """Test that generated exercises are counted."""
    before = REGISTRY.get_sample_value("vocabquiz_exercises_generated_total") or 0.0

    exercise_service.generate_exercises(animals_module.id)

    assert REGISTRY.get_sample_value("vocabquiz_exercises_generated_total") == before + 4


def test_delete_exercise(exercise_service: ExerciseService, animals_module: Module) -> None:
    """Test deleting a single exercise."""
    exercises = exercise_service.generate_exercises(animals_module.id)

    assert exercise_service.delete_exercise(exercises[0].id) is True
    assert exercise_service.get_exercise(exercises[0].id) is None
    assert exercise_service.get_total_exercises_in_module(animals_module.id) == 3
    assert exercise_service.delete_exercise(exercises[0].id) is False


def test_get_exercise_by_index(exercise_service: ExerciseService, animals_module: Module) -> None:
    """Test stepping through a module's exercises by position."""
    exercises = exercise_service.generate_exercises(animals_module.id)

    assert exercise_service.get_total_exercises_in_module(animals_module.id) == 4
    assert [exercise_service.get_exercise_by_index(animals_module.id, i).id for i in range(4)] == [
        e.id for e in exercises
    ]
    assert exercise_service.get_exercise_by_index(animals_module.id, 4) is None
    assert exercise_service.get_exercise_by_index(animals_module.id, -1) is None
    assert exercise_service.get_exercise_by_index(999, 0) is None


def test_random_exercise_is_seeded(db: Session, exercise_service: ExerciseService, animals_module: Module) -> None:
    """Test that the random pick comes from the injected random source."""
    exercises = exercise_service.generate_exercises(animals_module.id)

    service = ExerciseService(db, generator=ExerciseGenerator(random.Random(11)))
    picks = [service.get_random_exercise_for_module(animals_module.id).id for _ in range(6)]

    rng = random.Random(11)
    assert picks == [rng.choice(exercises).id for _ in range(6)]
    assert set(picks) <= {e.id for e in exercises}


def test_random_exercise_from_empty_module(exercise_service: ExerciseService, animals_module: Module) -> None:
    """Test that a module without exercises cannot serve one."""
    with pytest.raises(NoExercisesAvailable) as excinfo:
        exercise_service.get_random_exercise_for_module(animals_module.id)
    assert excinfo.value.module_id == animals_module.id


def test_seeded_generator_is_reproducible() -> None:
    """Test that the same seed produces the same exercises."""
    module = Module(id=1, title="Numbers")
    words = _unsaved_words(6)

    first = ExerciseGenerator(random.Random(42)).generate(module, words)
    second = ExerciseGenerator(random.Random(42)).generate(module, words)

    assert [(e.question, e.options) for e in first] == [(e.question, e.options) for e in second]


def test_distractors_come_from_other_words() -> None:
    """Test that the three wrong options are other words' translations."""
    module = Module(id=1, title="Numbers")
    words = _unsaved_words(10)
    generator = ExerciseGenerator(random.Random(3))

    for word, exercise in zip(words, generator.generate(module, words)):
        direction = QuestionDirection(exercise.direction)
        assert exercise.correct_answer == word.translation(direction)
        others = {other.translation(direction) for other in words if other is not word}
        wrong = [option for option in exercise.options if option != exercise.correct_answer]
        assert len(wrong) == 3
        assert set(wrong) <= others


def test_both_directions_are_used() -> None:
    """Test that the question direction is drawn per word."""
    module = Module(id=1, title="Numbers")
    words = _unsaved_words(40)

    exercises = ExerciseGenerator(random.Random(11)).generate(module, words)

    directions = Counter(exercise.direction for exercise in exercises)
    assert set(directions) == {d.value for d in QuestionDirection}


def test_generator_rejects_small_word_list() -> None:
    """Test that the pure generator validates the word count up front."""
    module = Module(id=5, title="Tiny")
    with pytest.raises(InsufficientVocabulary):
        ExerciseGenerator(random.Random(0)).generate(module, _unsaved_words(3))


def test_correct_option_position_is_uniform() -> None:
    """Test that the correct answer is equally likely in each of the four slots."""
    module = Module(id=1, title="Numbers")
    words = _unsaved_words(8)
    generator = ExerciseGenerator(random.Random(2024))

    positions = Counter()
    for _ in range(1000):
        for exercise in generator.generate(module, words):
            positions[exercise.options.index(exercise.correct_answer)] += 1

    total = sum(positions.values())
    expected = total / 4
    chi_square = sum((positions[slot] - expected) ** 2 / expected for slot in range(4))
    # 99.9th percentile of chi-square with 3 degrees of freedom
    assert chi_square < 16.27
