"""
Shared fixtures: an in-memory database with two users and a group.
"""
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from streakhub.constants import GroupRole
from streakhub.database import Base
from streakhub.models import Group, GroupMember, User

NEW_YORK = "America/New_York"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db_session):
    user = User(name="Ana", email="ana@example.com", timezone=NEW_YORK)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def other_user(db_session):
    user = User(name="Ben", email="ben@example.com", timezone="UTC")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def group(db_session, user, other_user):
    group = Group(name="Morning runners")
    db_session.add(group)
    db_session.commit()
    db_session.add_all([
        GroupMember(group_id=group.id, user_id=user.id, role=GroupRole.ADMIN),
        GroupMember(group_id=group.id, user_id=other_user.id, role=GroupRole.MEMBER),
    ])
    db_session.commit()
    return group


@pytest.fixture
def outsider_group(db_session, other_user):
    """A group the `user` fixture is not a member of"""
    group = Group(name="Book club")
    db_session.add(group)
    db_session.commit()
    db_session.add(GroupMember(group_id=group.id, user_id=other_user.id))
    db_session.commit()
    return group


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)
