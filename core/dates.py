from datetime import datetime, timezone

from dateutil import parser as date_parser


def utc_now():
    return datetime.now(timezone.utc)


def to_edition_date(moment):
    """YYYY-MM-DD of a moment, in UTC."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%d")


def format_edition_date(edition_date):
    """'2026-02-10' -> 'February 10, 2026'."""
    day = datetime.strptime(edition_date, "%Y-%m-%d")
    return f"{day:%B} {day.day}, {day.year}"


def parse_published(value, fallback=None):
    """
    Parse a feed/registry timestamp to an aware UTC datetime.

    Accepts datetimes, RFC 822 and ISO strings. Anything unparsable (or
    missing) becomes `fallback`, which defaults to now.
    """
    fallback = fallback or utc_now()

    if isinstance(value, datetime):
        parsed = value
    elif value:
        try:
            parsed = date_parser.parse(str(value))
        except (ValueError, TypeError, OverflowError):
            return fallback
    else:
        return fallback

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
