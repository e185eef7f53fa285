"""Reusable annotated field types shared by the request schemas."""
from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BeforeValidator

from app.core.clock import to_naive_utc


def blank_to_none(value):
    # Dashboard forms submit "" for cleared optional inputs
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


UtcDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]
OptionalText = Annotated[Optional[str], BeforeValidator(blank_to_none)]
OptionalDate = Annotated[Optional[date], BeforeValidator(blank_to_none)]
