"""Service for managing modules and their words."""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from vocabquiz.exceptions import NotFound
from vocabquiz.models.models import Module, Word

logger = logging.getLogger(__name__)


class WordService:
    """Service for managing modules and their words."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_module(self, module_id: int) -> Optional[Module]:
        """Get a module by its ID."""
        return self.db.query(Module).filter(Module.id == module_id).first()

    def get_module_or_raise(self, module_id: int) -> Module:
        module = self.get_module(module_id)
        if not module:
            raise NotFound("Module", module_id)
        return module

    def list_modules_for_owner(self, owner_id: int) -> List[Module]:
        """Get all modules created by a teacher."""
        return (
            self.db.query(Module)
            .filter(Module.owner_id == owner_id)
            .order_by(Module.id)
            .all()
        )

    def is_module_title_unique(self, title: str, owner_id: int) -> bool:
        """Check that the teacher has no other module with this title."""
        return (
            self.db.query(Module)
            .filter(Module.title == title, Module.owner_id == owner_id)
            .first()
        ) is None

    def create_module(self, title: str, owner_id: int, description: Optional[str] = None) -> Module:
        """Create a new empty module."""
        module = Module(title=title, owner_id=owner_id, description=description)
        self.db.add(module)
        self.db.commit()
        self.db.refresh(module)
        logger.info(f"Created module {module.id} '{title}' for owner {owner_id}")
        return module

    def delete_module(self, module_id: int) -> bool:
        """Delete a module together with its words and exercises."""
        module = self.get_module(module_id)
        if not module:
            return False

        self.db.delete(module)
        self.db.commit()
        logger.info(f"Deleted module {module_id}")
        return True

    def get_word(self, word_id: int) -> Optional[Word]:
        """Get a word by its ID."""
        return self.db.query(Word).filter(Word.id == word_id).first()

    def add_word(self, module_id: int, english: str, russian: str) -> Word:
        """Add a translation pair to a module."""
        self.get_module_or_raise(module_id)

        word = Word(module_id=module_id, english=english, russian=russian)
        self.db.add(word)
        self.db.commit()
        self.db.refresh(word)
        return word

    def add_words(self, module_id: int, pairs: List[Tuple[str, str]]) -> List[Word]:
        """Add several (english, russian) pairs to a module at once."""
        self.get_module_or_raise(module_id)

        words = [Word(module_id=module_id, english=english, russian=russian) for english, russian in pairs]
        self.db.add_all(words)
        self.db.commit()
        for word in words:
            self.db.refresh(word)
        return words

    def delete_word(self, word_id: int) -> bool:
        """Delete a word. Exercises already generated from it are kept."""
        word = self.get_word(word_id)
        if not word:
            return False

        self.db.delete(word)
        self.db.commit()
        return True

    def list_words_for_module(self, module_id: int) -> Tuple[Word, ...]:
        """Get a snapshot of the words in a module, ordered by ID."""
        return tuple(
            self.db.query(Word)
            .filter(Word.module_id == module_id)
            .order_by(Word.id)
            .all()
        )

    def get_word_count(self, module_id: int) -> int:
        """Get the number of words in a module."""
        return self.db.query(Word).filter(Word.module_id == module_id).count()
