"""
Calendar-day calculations.
Converts absolute instants into timezone-local calendar days and compares them.
"""
from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from streakhub.constants import DEFAULT_DATE_FORMAT
from streakhub.exceptions import InvalidTimezoneException


class DateService:
    """Service for timezone-aware calendar-day operations"""

    @staticmethod
    def utc_now() -> datetime:
        """Current instant as an aware UTC datetime"""
        return datetime.now(timezone.utc)

    @staticmethod
    def get_zone(tz_name: str) -> ZoneInfo:
        """
        Resolve an IANA timezone identifier.

        Args:
            tz_name: Zone name such as "America/New_York"

        Returns:
            ZoneInfo for the zone

        Raises:
            InvalidTimezoneException: If the zone is empty, malformed or unknown
        """
        if not tz_name or not isinstance(tz_name, str):
            raise InvalidTimezoneException(tz_name)
        try:
            return ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise InvalidTimezoneException(tz_name) from exc

    @staticmethod
    def is_valid_timezone(tz_name: str) -> bool:
        try:
            DateService.get_zone(tz_name)
        except InvalidTimezoneException:
            return False
        return True

    @staticmethod
    def as_utc(instant: datetime) -> datetime:
        # Naive datetimes are UTC by convention (that is how the database hands them back)
        if instant.tzinfo is None:
            return instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(timezone.utc)

    @staticmethod
    def local_date(instant: datetime, tz_name: str) -> date:
        """Wall-clock date of an instant as observed in tz_name"""
        zone = DateService.get_zone(tz_name)
        return DateService.as_utc(instant).astimezone(zone).date()

    @staticmethod
    def start_of_day_in_timezone(instant: datetime, tz_name: str) -> datetime:
        """
        Normalize an instant to the start of its calendar day in a timezone.

        The instant is read as wall-clock time in tz_name, truncated to local
        midnight, and returned as the matching absolute instant in UTC. If
        midnight falls in a DST gap, the first existing instant of the day
        is returned.

        Args:
            instant: Any datetime (naive values are taken as UTC)
            tz_name: IANA timezone of the user

        Returns:
            Aware UTC datetime of local midnight
        """
        zone = DateService.get_zone(tz_name)
        local_day = DateService.as_utc(instant).astimezone(zone).date()
        local_midnight = datetime.combine(local_day, time.min, tzinfo=zone)
        return local_midnight.astimezone(timezone.utc)

    @staticmethod
    def days_between(day_a: datetime, day_b: datetime, tz_name: str) -> int:
        """
        Whole calendar days from day_a to day_b as observed in tz_name.

        Positive when day_b is later. A 23- or 25-hour DST day still counts
        as exactly one day.
        """
        return (
            DateService.local_date(day_b, tz_name) - DateService.local_date(day_a, tz_name)
        ).days

    @staticmethod
    def is_next_calendar_day(day_a: datetime, day_b: datetime, tz_name: str) -> bool:
        """True if day_b falls on the calendar day right after day_a"""
        return DateService.days_between(day_a, day_b, tz_name) == 1

    @staticmethod
    def days_pending(
        due_day: datetime,
        tz_name: str,
        now: Optional[datetime] = None
    ) -> int:
        """
        Number of full calendar days elapsed since due_day, never negative.

        A task due today reports 0, as does a due_day in the future.
        """
        if now is None:
            now = DateService.utc_now()
        return max(0, DateService.days_between(due_day, now, tz_name))

    @staticmethod
    def format_in_timezone(
        instant: datetime,
        tz_name: str,
        fmt: str = DEFAULT_DATE_FORMAT
    ) -> str:
        """Render an instant as local wall-clock text"""
        zone = DateService.get_zone(tz_name)
        return DateService.as_utc(instant).astimezone(zone).strftime(fmt)
