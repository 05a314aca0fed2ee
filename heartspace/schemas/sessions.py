import datetime as dt

from pydantic import BaseModel, Field

from ..database import INT32_MAX


class SessionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    date: dt.date
    time: str = Field(..., min_length=1, max_length=50)
    max_attendees: int = Field(..., alias="maxAttendees", gt=0, le=INT32_MAX)

    class Config:
        populate_by_name = True
