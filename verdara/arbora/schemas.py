# verdara/arbora/schemas.py
import re
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class CreateClientRequest(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class Client(CreateClientRequest):
    id: int


class CreateJobRequest(BaseModel):
    title: str
    client_id: Optional[int] = None
    description: Optional[str] = None
    status: str = "scheduled"
    scheduled_date: Optional[str] = Field(
        default=None, description="Zero-padded YYYY-MM-DD"
    )
    crew: List[str] = Field(default_factory=list)
    estimated_cost: Optional[float] = None
    notes: Optional[str] = None

    @field_validator("scheduled_date")
    @classmethod
    def _check_date(cls, v):
        if v is not None and not _DATE_RE.match(v):
            raise ValueError("scheduled_date must be YYYY-MM-DD")
        return v


class Job(CreateJobRequest):
    id: int


class DayCell(BaseModel):
    day: int
    date: str
    is_today: bool = False
    jobs: List[Job] = Field(default_factory=list)


class MonthGrid(BaseModel):
    year: int
    month: int = Field(description="Zero-based month index (0 = January)")
    title: str
    leading_blanks: int
    cells: List[Optional[DayCell]]
    prev: List[int]
    next: List[int]

    @property
    def day_cells(self) -> List[DayCell]:
        return [c for c in self.cells if c is not None]
