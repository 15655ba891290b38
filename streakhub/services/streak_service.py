"""
Streak engine.
Keeps the per-(group, user) count of consecutive calendar days with a
completed task: increments on consecutive completions, restarts on gaps,
zeroes on an explicit miss and decays stale streaks on read.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from streakhub.constants import STALE_STREAK_DAYS, STREAK_WRITE_ATTEMPTS
from streakhub.exceptions import ConcurrentModificationException, ValidationException
from streakhub.models import Streak
from streakhub.repositories.streak_repository import StreakRepository
from streakhub.services.date_service import DateService

logger = logging.getLogger("streakhub.streaks")


class StreakService:
    """Service for streak bookkeeping"""

    def __init__(
        self,
        db: Session,
        streak_repo: Optional[StreakRepository] = None,
        date_service: Optional[DateService] = None
    ):
        self.db = db
        self.streak_repo = streak_repo or StreakRepository()
        self.date_service = date_service or DateService()

    def record_completion(
        self,
        user_id: int,
        group_id: int,
        day: datetime,
        timezone: str
    ) -> Streak:
        """
        Count a completed task for `day` towards the user's streak in a group.

        The streak grows by one when `day` is the calendar day right after the
        last counted day; any other day (a gap, the same day again, or an
        earlier day) restarts the count at 1. The best streak follows as a
        high-water mark.

        Args:
            user_id: Owner of the task
            group_id: Group the task belongs to
            day: The task's date (normalized again here)
            timezone: IANA timezone the user's calendar days are counted in

        Returns:
            The updated streak

        Raises:
            InvalidTimezoneException: Before anything is written
            ConcurrentModificationException: If the row changed under us twice
        """
        self.date_service.get_zone(timezone)
        normalized_day = self.date_service.start_of_day_in_timezone(day, timezone)

        def apply() -> Streak:
            streak = self.streak_repo.get(self.db, group_id, user_id)
            if streak is None:
                streak = self.streak_repo.create(self.db, group_id, user_id)

            if streak.last_task_date is None:
                current = 1
            elif self.date_service.is_next_calendar_day(
                streak.last_task_date, normalized_day, timezone
            ):
                current = streak.current_streak + 1
            else:
                if streak.current_streak > 0:
                    logger.info(
                        f"Streak restarted for user {user_id} in group {group_id} "
                        f"(was {streak.current_streak}, last "
                        f"{self.date_service.format_in_timezone(streak.last_task_date, timezone)})"
                    )
                current = 1

            return self.streak_repo.update(
                self.db,
                streak,
                current_streak=current,
                best_streak=max(streak.best_streak, current),
                last_task_date=normalized_day
            )

        return self._with_retry(apply, user_id, group_id)

    def break_streak(self, user_id: int, group_id: int) -> Optional[Streak]:
        """
        Zero the current streak after a missed task.

        The best streak and the last counted day are left alone, so the next
        completion restarts at 1 through the gap rule.

        Returns:
            The updated streak, or None if the user has no streak in the group
        """
        def apply() -> Optional[Streak]:
            streak = self.streak_repo.get(self.db, group_id, user_id)
            if streak is None:
                return None
            if streak.current_streak == 0:
                return streak
            logger.info(
                f"Streak broken for user {user_id} in group {group_id} "
                f"(was {streak.current_streak})"
            )
            return self.streak_repo.update(self.db, streak, current_streak=0)

        return self._with_retry(apply, user_id, group_id)

    def sweep_stale_streaks(
        self,
        timezone: str,
        user_id: Optional[int] = None,
        group_id: Optional[int] = None
    ) -> int:
        """
        Reset running streaks whose owner went silent.

        A streak is stale when more than one calendar day separates its last
        counted day from today, i.e. neither today nor yesterday had a
        completion. Days are counted in the timezone of the streak's owner,
        never the caller's. Call this before showing streaks.

        Args:
            timezone: IANA timezone used for streaks whose owner is not loaded
            user_id: Restrict the sweep to one user
            group_id: Restrict the sweep to one group

        Returns:
            Number of streaks reset
        """
        if user_id is None and group_id is None:
            raise ValidationException("scope", "user_id or group_id is required")
        self.date_service.get_zone(timezone)

        now = self.date_service.utc_now()
        reset = 0
        for streak in self.streak_repo.find_active(self.db, user_id=user_id, group_id=group_id):
            streak_id = streak.id
            if streak.last_task_date is None:
                continue
            owner_timezone = streak.user.timezone if streak.user is not None else timezone
            idle_days = self.date_service.days_between(
                streak.last_task_date, now, owner_timezone
            )
            if idle_days <= STALE_STREAK_DAYS:
                continue
            try:
                self.streak_repo.update(self.db, streak, current_streak=0)
            except ConcurrentModificationException:
                # A completion landed meanwhile; it decides the streak's state
                logger.info(f"Skipped stale reset of streak {streak_id}: modified concurrently")
                continue
            reset += 1

        if reset:
            logger.info(
                f"Reset {reset} stale streak(s) (user={user_id}, group={group_id})"
            )
        return reset

    def get_streak(self, user_id: int, group_id: int) -> Optional[Streak]:
        """Get a user's streak in a group"""
        return self.streak_repo.get(self.db, group_id, user_id)

    def get_streaks_for_user(self, user_id: int) -> List[Streak]:
        """Get all of a user's streaks, longest running first"""
        return self.streak_repo.get_for_user(self.db, user_id)

    def get_streaks_for_group(self, group_id: int) -> List[Streak]:
        """Get the streak leaderboard of a group"""
        return self.streak_repo.get_for_group(self.db, group_id)

    def _with_retry(self, apply: Callable, user_id: int, group_id: int):
        """Run a read-compute-write, re-reading once if the row changed underneath"""
        for attempt in range(1, STREAK_WRITE_ATTEMPTS + 1):
            try:
                return apply()
            except ConcurrentModificationException:
                if attempt == STREAK_WRITE_ATTEMPTS:
                    logger.error(
                        f"Streak update for user {user_id} in group {group_id} "
                        f"failed after {attempt} attempts"
                    )
                    raise
                logger.warning(
                    f"Concurrent streak update for user {user_id} in group {group_id}, retrying"
                )
