"""Errors raised by the exercise engine."""


class VocabQuizError(Exception):
    """Base class for errors raised by the engine."""


class InsufficientVocabulary(VocabQuizError, ValueError):
    """A module has too few words to build multiple-choice exercises."""

    def __init__(self, module_id: int, word_count: int, required: int):
        self.module_id = module_id
        self.word_count = word_count
        self.required = required
        super().__init__(
            f"Module {module_id} must have at least {required} words "
            f"to generate exercises, found {word_count}"
        )


class NotFound(VocabQuizError, LookupError):
    """A referenced module, user, group or exercise does not exist."""

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class NoExercisesAvailable(VocabQuizError, LookupError):
    """A module has no exercises to serve."""

    def __init__(self, module_id: int):
        self.module_id = module_id
        super().__init__(f"Module {module_id} has no exercises")
