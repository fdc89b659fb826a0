"""Closed value sets shared by the models, schemas and access checks."""

import enum


class Role(str, enum.Enum):
    ADMIN = "admin"
    FACULTY = "faculty"
    STUDENT = "student"


class Mode(str, enum.Enum):
    ONLINE = "online"
    ONSITE = "onsite"


class AppointmentStatus(str, enum.Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    DECLINED = "declined"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
