from datetime import UTC, datetime


class Now:
    @staticmethod
    def as_datetime() -> datetime:
        """Return the current UTC time as a datetime object."""

        return datetime.now(UTC)

    @staticmethod
    def as_iso() -> str:
        """Return the current UTC time as an ISO-8601 string, as carried on import events."""

        return datetime.now(UTC).isoformat()

    @staticmethod
    def as_storage() -> datetime:
        """Return the current UTC time without tzinfo, the form TIMESTAMP columns hold."""

        return datetime.now(UTC).replace(tzinfo=None)

    @staticmethod
    def to_storage(dt: datetime | None) -> datetime | None:
        """Convert an aware datetime to naive UTC for a TIMESTAMP column."""

        if dt is None:
            return None
        return Now.to_utc(dt).replace(tzinfo=None)

    @staticmethod
    def to_utc(dt: datetime | None) -> datetime | None:
        """Read a stored timestamp back as aware UTC; naive values are taken as UTC."""

        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=UTC)
        return dt.astimezone(UTC)
