"""
Database Schemas

Pydantic models for the three MongoDB collections and the request bodies that
write to them. Request models validate at the API boundary; the `*Out` models
are what the API returns.

Collections:
- User -> "users"
- Journey -> "journeys"
- Image -> "images"
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

USERS = "users"
JOURNEYS = "journeys"
IMAGES = "images"


# ----------------------
# Users
# ----------------------

class UserCreate(BaseModel):
    """Signup payload. The password is hashed before it reaches the store."""
    username: str = Field(..., description="Unique login name")
    password: str = Field(..., description="Plaintext password, never stored")
    firstName: str = Field(..., description="Given name")
    lastName: str = Field(..., description="Family name")

    @field_validator("username", "password")
    @classmethod
    def no_surrounding_whitespace(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        if v != v.strip():
            raise ValueError("cannot start or end with whitespace")
        return v


class UserOut(BaseModel):
    id: str
    username: str
    firstName: str
    lastName: str

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UserOut":
        return cls(
            id=str(doc["_id"]),
            username=doc.get("username", ""),
            firstName=doc.get("firstName", ""),
            lastName=doc.get("lastName", ""),
        )


# ----------------------
# Journeys
# ----------------------

def to_store_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC at millisecond precision, the form MongoDB hands back.

    Naive input is taken to already be UTC.
    """
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def check_date_order(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start is not None and end is not None and end < start:
        raise ValueError("endDate must not be before startDate")


class JourneyCreate(BaseModel):
    title: str = Field(..., min_length=1, description="Trip title")
    location: Optional[str] = Field(None, description="Country or place visited")
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    description: Optional[str] = None
    created: Optional[datetime] = Field(None, description="Defaults to insert time")
    loggedInUserName: str = Field(..., min_length=1, description="Owner username (not checked against users)")

    @field_validator("startDate", "endDate", "created")
    @classmethod
    def normalise_datetime(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_store_datetime(v)

    @model_validator(mode="after")
    def dates_in_order(self):
        check_date_order(self.startDate, self.endDate)
        return self


class JourneyUpdate(BaseModel):
    """Partial update. Fields left out (or sent as null) are not touched."""
    id: Optional[str] = Field(None, description="Must match the path id when present")
    title: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    description: Optional[str] = None

    @field_validator("startDate", "endDate")
    @classmethod
    def normalise_datetime(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_store_datetime(v)

    @model_validator(mode="after")
    def dates_in_order(self):
        check_date_order(self.startDate, self.endDate)
        return self

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True, exclude={"id"})


def format_dates(start: Optional[datetime], end: Optional[datetime]) -> str:
    """Display form of a trip's date range, e.g. '2024-03-01 - 2024-03-09'."""
    left = start.date().isoformat() if start else ""
    right = end.date().isoformat() if end else ""
    return f"{left} - {right}"


class JourneyOut(BaseModel):
    id: str
    title: str
    location: Optional[str] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    dates: str
    description: Optional[str] = None
    created: Optional[datetime] = None
    loggedInUserName: str

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "JourneyOut":
        return cls(
            id=str(doc["_id"]),
            title=doc.get("title", ""),
            location=doc.get("location"),
            startDate=doc.get("startDate"),
            endDate=doc.get("endDate"),
            dates=format_dates(doc.get("startDate"), doc.get("endDate")),
            description=doc.get("description"),
            created=doc.get("created"),
            loggedInUserName=doc.get("loggedInUserName", ""),
        )


class JourneyList(BaseModel):
    journeys: List[JourneyOut]


# ----------------------
# Images
# ----------------------

class ImageCreate(BaseModel):
    journeyId: str = Field(..., min_length=1, description="Id of the journey, stored as a string")
    imgAddress: str = Field(..., min_length=1, description="Image URL")
    username: str = Field(..., description="Owner username (denormalized)")
    journeyTitle: str = Field(..., description="Journey title (denormalized)")


class ImageOut(ImageCreate):
    id: str

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "ImageOut":
        return cls(
            id=str(doc["_id"]),
            journeyId=doc.get("journeyId", ""),
            imgAddress=doc.get("imgAddress", ""),
            username=doc.get("username", ""),
            journeyTitle=doc.get("journeyTitle", ""),
        )
