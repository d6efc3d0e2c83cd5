"""User service for managing users, study groups and module assignment."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from vocabquiz.exceptions import NotFound
from vocabquiz.models.models import Group, Module, User, UserRole

# Configure logging
logger = logging.getLogger(__name__)


class UserService:
    """Service for managing users, study groups and module assignment."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_username(self, username: str) -> Optional[User]:
        """Get user by username."""
        return self.db.query(User).filter(User.username == username).first()

    def create_user(self, username: str, role: UserRole = UserRole.STUDENT) -> User:
        """Create a new user with the given role."""
        user = User(username=username, role=UserRole(role).value)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Created {user.role} user {user.id}")
        return user

    def get_group(self, group_id: int) -> Optional[Group]:
        """Get group by ID."""
        return self.db.query(Group).filter(Group.id == group_id).first()

    def get_group_or_raise(self, group_id: int) -> Group:
        group = self.get_group(group_id)
        if not group:
            raise NotFound("Group", group_id)
        return group

    def create_group(self, name: str, teacher_id: int, description: Optional[str] = None) -> Group:
        """Create a study group owned by a teacher."""
        group = Group(name=name, teacher_id=teacher_id, description=description)
        self.db.add(group)
        self.db.commit()
        self.db.refresh(group)
        logger.info(f"Created group {group.id} '{name}' for teacher {teacher_id}")
        return group

    def list_groups_for_teacher(self, teacher_id: int) -> List[Group]:
        """Get all groups owned by a teacher."""
        return (
            self.db.query(Group)
            .filter(Group.teacher_id == teacher_id)
            .order_by(Group.id)
            .all()
        )

    def is_group_name_unique(self, name: str, teacher_id: int) -> bool:
        """Check that the teacher has no other group with this name."""
        return (
            self.db.query(Group)
            .filter(Group.name == name, Group.teacher_id == teacher_id)
            .first()
        ) is None

    def add_student_to_group(self, group_id: int, student_id: int) -> bool:
        """Put a student into a group. Users who are not students are ignored."""
        group = self.get_group_or_raise(group_id)
        student = self.get_user(student_id)
        if not student:
            raise NotFound("User", student_id)

        if not student.is_student:
            logger.warning(f"User {student_id} is not a student, not adding to group {group_id}")
            return False

        student.group_id = group.id
        self.db.commit()
        return True

    def remove_student_from_group(self, student_id: int) -> None:
        """Take a student out of their group."""
        student = self.get_user(student_id)
        if not student:
            raise NotFound("User", student_id)

        student.group_id = None
        self.db.commit()

    def list_students_in_group(self, group_id: int) -> List[User]:
        """Get the students currently in a group."""
        return (
            self.db.query(User)
            .filter(
                User.group_id == group_id,
                User.role == UserRole.STUDENT.value,
            )
            .order_by(User.username)
            .all()
        )

    def assign_module_to_group(self, group_id: int, module_id: int) -> None:
        """Make a module available to a group. Assigning twice is a no-op."""
        group = self.get_group_or_raise(group_id)
        module = self.db.query(Module).filter(Module.id == module_id).first()
        if not module:
            raise NotFound("Module", module_id)

        if module not in group.assigned_modules:
            group.assigned_modules.append(module)
            self.db.commit()

    def remove_module_from_group(self, group_id: int, module_id: int) -> None:
        """Withdraw a module from a group."""
        group = self.get_group_or_raise(group_id)
        group.assigned_modules = [m for m in group.assigned_modules if m.id != module_id]
        self.db.commit()

    def list_modules_for_group(self, group_id: int) -> List[Module]:
        """Get modules assigned to a group."""
        group = self.get_group(group_id)
        if not group:
            return []
        return sorted(group.assigned_modules, key=lambda module: module.id)

    def list_modules_for_student(self, student_id: int) -> List[Module]:
        """Get the modules available to a student through their group."""
        student = self.get_user(student_id)
        if not student or student.group_id is None:
            return []
        return self.list_modules_for_group(student.group_id)

    def delete_group(self, group_id: int) -> bool:
        """Delete a group. Its students stay but no longer belong to a group."""
        group = self.get_group(group_id)
        if not group:
            return False

        for student in group.students:
            student.group_id = None
        group.assigned_modules = []
        self.db.delete(group)
        self.db.commit()
        logger.info(f"Deleted group {group_id}")
        return True

    def list_students_without_group(self) -> List[User]:
        """Get students not in any group."""
        return (
            self.db.query(User)
            .filter(
                User.group_id.is_(None),
                User.role == UserRole.STUDENT.value,
            )
            .order_by(User.username)
            .all()
        )
