import re
from dataclasses import dataclass
from datetime import date, datetime, time, timezone

from fastapi import Query
from fastapi.exceptions import RequestValidationError
from pydantic import TypeAdapter, ValidationError

from app.schemas.transaction import as_utc

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_datetime_adapter = TypeAdapter(datetime)


def parse_date_param(name: str, value: str | None, end_of_day: bool = False) -> datetime | None:
    """
    Parse a date query parameter into an aware UTC datetime.

    Plain dates (YYYY-MM-DD) expand to the first instant of the day, or the
    last instant when used as an upper bound.

    Args:
        name: Query parameter name, used in the error location
        value: Raw query string value
        end_of_day: Expand plain dates to 23:59:59.999999

    Returns:
        datetime | None: Parsed UTC datetime, None when the value is absent

    Raises:
        RequestValidationError: If the value is not a date or datetime
    """
    if value is None or value == "":
        return None

    try:
        if _DATE_ONLY.match(value):
            day = date.fromisoformat(value)
            return datetime.combine(
                day, time.max if end_of_day else time.min, tzinfo=timezone.utc
            )
        return as_utc(_datetime_adapter.validate_python(value))
    except (ValueError, ValidationError):
        raise RequestValidationError(
            [
                {
                    "type": "datetime_parsing",
                    "loc": ("query", name),
                    "msg": "Input should be a valid date or datetime",
                    "input": value,
                }
            ]
        )


@dataclass
class DateWindow:
    start: datetime | None
    end: datetime | None

    @property
    def complete(self) -> bool:
        return self.start is not None and self.end is not None


async def get_date_window(
    start_date: str | None = Query(None, description="Inclusive lower bound (date or datetime)"),
    end_date: str | None = Query(None, description="Inclusive upper bound (date or datetime)"),
) -> DateWindow:
    """Parse the start_date/end_date query pair shared by list and summary routes."""
    return DateWindow(
        start=parse_date_param("start_date", start_date),
        end=parse_date_param("end_date", end_date, end_of_day=True),
    )
