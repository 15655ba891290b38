"""
Group repository - Read access to users, groups and memberships.
Those rows are owned by the account and group management layer; this
application only looks them up.
"""
from typing import Optional

from sqlalchemy.orm import Session

from streakhub.models import GroupMember, User


class UserRepository:
    """Repository for User lookups"""

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()


class GroupRepository:
    """Repository for group membership lookups"""

    @staticmethod
    def get_membership(db: Session, group_id: int, user_id: int) -> Optional[GroupMember]:
        """Get a user's membership row in a group"""
        return db.query(GroupMember).filter(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id
        ).first()
