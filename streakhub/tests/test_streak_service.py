"""
Tests for StreakService.

Tests cover:
1. Consecutive-day increments and gap restarts
2. Breaking streaks on missed tasks
3. Sweeping stale streaks on read
4. Retrying once on concurrent modification
5. Persistence through the SQLAlchemy repository
6. Version conflicts and creation races on a real database
"""
import pytest
from datetime import timedelta
from unittest.mock import patch

from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from streakhub.exceptions import (
    ConcurrentModificationException, InvalidTimezoneException, ValidationException
)
from streakhub.models import Streak
from streakhub.repositories.streak_repository import StreakRepository
from streakhub.services.date_service import DateService
from streakhub.services.streak_service import StreakService
from streakhub.tests.conftest import NEW_YORK, utc
from streakhub.tests.fakes import FakeStreakRepository

GROUP_ID = 7
USER_ID = 3


def day(n: int):
    """Noon UTC on January n, 2024"""
    return utc(2024, 1, n, 12)


@pytest.fixture
def repo():
    return FakeStreakRepository()


@pytest.fixture
def service(repo):
    return StreakService(db=None, streak_repo=repo)


class TestRecordCompletion:
    """Tests for record_completion"""

    def test_first_completion_starts_at_one(self, service):
        streak = service.record_completion(USER_ID, GROUP_ID, day(1), "UTC")

        assert streak.current_streak == 1
        assert streak.best_streak == 1
        assert streak.last_task_date == utc(2024, 1, 1)

    def test_consecutive_days_increment(self, service):
        for n in (1, 2, 3):
            streak = service.record_completion(USER_ID, GROUP_ID, day(n), "UTC")

        assert streak.current_streak == 3
        assert streak.best_streak == 3

    def test_gap_restarts_and_keeps_best(self, service):
        for n in (1, 2, 6):
            streak = service.record_completion(USER_ID, GROUP_ID, day(n), "UTC")

        assert streak.current_streak == 1
        assert streak.best_streak == 2
        assert streak.last_task_date == utc(2024, 1, 6)

    def test_same_day_twice_restarts_at_one(self, service):
        """A second completion for the already counted day is not consecutive"""
        for n in (1, 2, 2):
            streak = service.record_completion(USER_ID, GROUP_ID, day(n), "UTC")

        assert streak.current_streak == 1
        assert streak.best_streak == 2

    def test_stores_normalized_day(self, service):
        # 03:00 UTC on Jan 2 is still Jan 1 in New York
        streak = service.record_completion(USER_ID, GROUP_ID, utc(2024, 1, 2, 3), NEW_YORK)

        assert streak.last_task_date == utc(2024, 1, 1, 5)

    def test_invalid_timezone_writes_nothing(self, service, repo):
        with pytest.raises(InvalidTimezoneException):
            service.record_completion(USER_ID, GROUP_ID, day(1), "Bogus/Zone")

        assert repo.rows == {}
        assert repo.update_calls == 0

    def test_streaks_are_per_group(self, service):
        service.record_completion(USER_ID, GROUP_ID, day(1), "UTC")
        service.record_completion(USER_ID, GROUP_ID, day(2), "UTC")
        other = service.record_completion(USER_ID, GROUP_ID + 1, day(2), "UTC")

        assert other.current_streak == 1
        assert service.get_streak(USER_ID, GROUP_ID).current_streak == 2


class TestBreakStreak:
    """Tests for break_streak"""

    def test_zeroes_current_and_keeps_best(self, service, repo):
        repo.seed(GROUP_ID, USER_ID, current_streak=4, best_streak=6, last_task_date=utc(2024, 1, 4))

        streak = service.break_streak(USER_ID, GROUP_ID)

        assert streak.current_streak == 0
        assert streak.best_streak == 6
        assert streak.last_task_date == utc(2024, 1, 4)

    def test_absent_streak_returns_none(self, service, repo):
        assert service.break_streak(USER_ID, GROUP_ID) is None
        assert repo.rows == {}

    def test_already_broken_streak_is_not_rewritten(self, service, repo):
        repo.seed(GROUP_ID, USER_ID, current_streak=0, best_streak=2)

        streak = service.break_streak(USER_ID, GROUP_ID)

        assert streak.current_streak == 0
        assert repo.update_calls == 0

    def test_next_completion_after_break_restarts(self, service):
        service.record_completion(USER_ID, GROUP_ID, day(1), "UTC")
        service.break_streak(USER_ID, GROUP_ID)

        streak = service.record_completion(USER_ID, GROUP_ID, day(3), "UTC")

        assert streak.current_streak == 1
        assert streak.best_streak == 1


class TestSweepStaleStreaks:
    """Tests for sweep_stale_streaks"""

    def test_resets_streak_idle_for_three_days(self, service, repo):
        stale = repo.seed(GROUP_ID, USER_ID, current_streak=5, best_streak=5,
                          last_task_date=utc(2024, 1, 1))

        with patch.object(DateService, "utc_now", return_value=utc(2024, 1, 4, 9)):
            reset = service.sweep_stale_streaks("UTC", user_id=USER_ID)

        assert reset == 1
        assert stale.current_streak == 0
        assert stale.best_streak == 5

    def test_keeps_streak_completed_yesterday(self, service, repo):
        fresh = repo.seed(GROUP_ID, USER_ID, current_streak=2, best_streak=2,
                          last_task_date=utc(2024, 1, 3))

        with patch.object(DateService, "utc_now", return_value=utc(2024, 1, 4, 23)):
            reset = service.sweep_stale_streaks("UTC", group_id=GROUP_ID)

        assert reset == 0
        assert fresh.current_streak == 2

    def test_today_is_judged_in_users_timezone(self, service, repo):
        """01:00 UTC Jan 4 is still Jan 3 in New York, so Jan 2 is only yesterday"""
        fresh = repo.seed(GROUP_ID, USER_ID, current_streak=2, best_streak=2,
                          last_task_date=utc(2024, 1, 2, 5))

        with patch.object(DateService, "utc_now", return_value=utc(2024, 1, 4, 1)):
            reset = service.sweep_stale_streaks(NEW_YORK, user_id=USER_ID)

        assert reset == 0
        assert fresh.current_streak == 2

    def test_scope_is_respected(self, service, repo):
        mine = repo.seed(GROUP_ID, USER_ID, current_streak=3, last_task_date=utc(2024, 1, 1))
        theirs = repo.seed(GROUP_ID, USER_ID + 1, current_streak=3, last_task_date=utc(2024, 1, 1))

        with patch.object(DateService, "utc_now", return_value=utc(2024, 1, 10)):
            service.sweep_stale_streaks("UTC", user_id=USER_ID)

        assert mine.current_streak == 0
        assert theirs.current_streak == 3

    def test_requires_scope(self, service):
        with pytest.raises(ValidationException):
            service.sweep_stale_streaks("UTC")

    def test_concurrent_update_is_skipped(self, repo):
        repo.seed(GROUP_ID, USER_ID, current_streak=3, last_task_date=utc(2024, 1, 1))
        repo.conflicts = 1
        service = StreakService(db=None, streak_repo=repo)

        with patch.object(DateService, "utc_now", return_value=utc(2024, 1, 10)):
            reset = service.sweep_stale_streaks("UTC", user_id=USER_ID)

        assert reset == 0


class TestConcurrentModification:
    """Tests for the single retry on version conflicts"""

    def test_retries_once_with_fresh_state(self):
        def competing_completion(streak):
            streak.current_streak = 2
            streak.best_streak = 2

        repo = FakeStreakRepository(conflicts=1, on_conflict=competing_completion)
        repo.seed(GROUP_ID, USER_ID, current_streak=1, best_streak=1, last_task_date=utc(2024, 1, 1))
        service = StreakService(db=None, streak_repo=repo)

        streak = service.record_completion(USER_ID, GROUP_ID, day(2), "UTC")

        assert repo.update_calls == 2
        assert streak.current_streak == 3
        assert streak.best_streak == 3

    def test_second_conflict_propagates(self):
        repo = FakeStreakRepository(conflicts=2)
        repo.seed(GROUP_ID, USER_ID, current_streak=1, best_streak=1, last_task_date=utc(2024, 1, 1))
        service = StreakService(db=None, streak_repo=repo)

        with pytest.raises(ConcurrentModificationException):
            service.record_completion(USER_ID, GROUP_ID, day(2), "UTC")

        assert repo.update_calls == 2


class TestWithDatabase:
    """StreakService against the SQLAlchemy repository"""

    def test_new_york_week(self, db_session, user, group):
        """Evening completions on three local days, then a miss"""
        service = StreakService(db_session)
        # 21:00 EST on Jan 1-3 is 02:00 UTC on Jan 2-4
        for n in (2, 3, 4):
            streak = service.record_completion(user.id, group.id, utc(2024, 1, n, 2), NEW_YORK)

        assert (streak.current_streak, streak.best_streak) == (3, 3)
        assert streak.last_task_date == utc(2024, 1, 3, 5)

        streak = service.break_streak(user.id, group.id)

        assert (streak.current_streak, streak.best_streak) == (0, 3)

    def test_version_increments_on_write(self, db_session, user, group):
        service = StreakService(db_session)
        first = service.record_completion(user.id, group.id, day(1), "UTC")
        version = first.version

        second = service.record_completion(user.id, group.id, day(2), "UTC")

        assert second.version == version + 1

    def test_leaderboard_order(self, db_session, user, other_user, group):
        service = StreakService(db_session)
        service.record_completion(user.id, group.id, day(1), NEW_YORK)
        for n in (1, 2):
            service.record_completion(other_user.id, group.id, day(n), "UTC")

        leaderboard = service.get_streaks_for_group(group.id)

        assert [streak.user_id for streak in leaderboard] == [other_user.id, user.id]
        assert [streak.group_id for streak in service.get_streaks_for_user(user.id)] == [group.id]

    def test_sweep_persists_reset(self, db_session, user, group):
        service = StreakService(db_session)
        service.record_completion(user.id, group.id, utc(2024, 1, 1, 17), NEW_YORK)
        later = utc(2024, 1, 1, 17) + timedelta(days=5)

        with patch.object(DateService, "utc_now", return_value=later):
            assert service.sweep_stale_streaks(NEW_YORK, group_id=group.id) == 1

        db_session.expire_all()
        assert service.get_streak(user.id, group.id).current_streak == 0

    def test_sweep_judges_each_streak_in_its_owners_timezone(
        self, db_session, user, other_user, group
    ):
        """A caller far ahead of the owner must not age the owner's yesterday"""
        service = StreakService(db_session)
        for n in (1, 2):
            service.record_completion(user.id, group.id, utc(2024, 1, n, 17), NEW_YORK)
        service.record_completion(other_user.id, group.id, utc(2024, 1, 1, 12), "UTC")

        # 20:00 Jan 3 in New York, 10:00 Jan 4 in Tokyo
        with patch.object(DateService, "utc_now", return_value=utc(2024, 1, 4, 1)):
            reset = service.sweep_stale_streaks("Asia/Tokyo", group_id=group.id)

        db_session.expire_all()
        assert reset == 1
        assert service.get_streak(user.id, group.id).current_streak == 2
        assert service.get_streak(other_user.id, group.id).current_streak == 0


class TestConcurrencyWithDatabase:
    """Version conflicts and creation races against the SQLAlchemy repository"""

    def test_stale_read_is_retried_with_fresh_row(self, engine, db_session, user, group):
        service = StreakService(db_session)
        service.record_completion(user.id, group.id, utc(2024, 1, 1, 17), NEW_YORK)

        # Another request counts Jan 2 while this session still holds the Jan 1 row
        other_session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
        try:
            StreakService(other_session).record_completion(
                user.id, group.id, utc(2024, 1, 2, 17), NEW_YORK
            )
        finally:
            other_session.close()

        with patch.object(StreakRepository, "update", wraps=StreakRepository.update) as update:
            streak = service.record_completion(user.id, group.id, utc(2024, 1, 3, 17), NEW_YORK)

        assert update.call_count == 2
        assert (streak.current_streak, streak.best_streak) == (3, 3)

    def test_lost_creation_race_is_retried(self, db_session, user, group):
        service = StreakService(db_session)
        service.record_completion(user.id, group.id, utc(2024, 1, 1, 17), NEW_YORK)
        real_get = StreakRepository.get
        reads = []

        def miss_first_read(db, group_id, user_id):
            # The first read happens before the competing request's insert
            reads.append(user_id)
            if len(reads) == 1:
                return None
            return real_get(db, group_id, user_id)

        with patch.object(StreakRepository, "get", side_effect=miss_first_read):
            streak = service.record_completion(user.id, group.id, utc(2024, 1, 2, 17), NEW_YORK)

        assert len(reads) == 2
        assert (streak.current_streak, streak.best_streak) == (2, 2)
        assert db_session.query(Streak).count() == 1

    def test_repeated_creation_conflict_propagates(self, db_session, user, group):
        service = StreakService(db_session)
        service.record_completion(user.id, group.id, utc(2024, 1, 1, 17), NEW_YORK)

        with patch.object(StreakRepository, "get", return_value=None):
            with pytest.raises(ConcurrentModificationException):
                service.record_completion(user.id, group.id, utc(2024, 1, 2, 17), NEW_YORK)

        [streak] = db_session.query(Streak).all()
        assert (streak.current_streak, streak.best_streak) == (1, 1)

    def test_failed_first_write_leaves_no_zeroed_row(self, db_session, user, group):
        service = StreakService(db_session)

        with patch.object(db_session, "commit", side_effect=StaleDataError("row changed")):
            with pytest.raises(ConcurrentModificationException):
                service.record_completion(user.id, group.id, utc(2024, 1, 1, 17), NEW_YORK)

        assert db_session.query(Streak).count() == 0

    def test_new_streak_is_written_in_one_commit(self, db_session, user, group):
        service = StreakService(db_session)

        with patch.object(db_session, "commit", wraps=db_session.commit) as commit:
            streak = service.record_completion(user.id, group.id, utc(2024, 1, 1, 17), NEW_YORK)

        assert commit.call_count == 1
        assert (streak.current_streak, streak.version) == (1, 1)
