"""Clinic directory models: the read-only snapshot the engine consults."""

from typing import Optional

from pydantic import BaseModel, Field


class Clinic(BaseModel):
    """A clinic as spoken about on the phone."""
    id: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None


class Department(BaseModel):
    """An active department that accepts appointments."""
    id: str
    clinic_id: str
    name: str
    description: Optional[str] = None
    is_active: bool = True


class Doctor(BaseModel):
    """A doctor with a weekly availability template.

    ``available_days`` holds weekday names ("Monday") and
    ``available_times`` the fixed ``HH:MM`` slots offered on each working day.
    """
    id: str
    clinic_id: str
    department_id: str
    name: str
    specialization: Optional[str] = None
    available_days: list[str] = Field(default_factory=list)
    available_times: list[str] = Field(default_factory=list)
    is_active: bool = True

    def works_on(self, weekday_name: str) -> bool:
        return weekday_name.lower() in {d.lower() for d in self.available_days}


class DirectorySnapshot(BaseModel):
    """A clinic with its departments and doctors."""
    clinic: Clinic
    departments: list[Department] = Field(default_factory=list)
    doctors: list[Doctor] = Field(default_factory=list)
