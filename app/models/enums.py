"""Enumerations shared by models, schemas and services."""

from enum import Enum


class Brand(str, Enum):
    AMEMOBA = "AMEMOBA"
    SAKUMOBA = "SAKUMOBA"


class ReviewSource(str, Enum):
    GOOGLE = "GOOGLE"


class FetchStatus(str, Enum):
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class Granularity(str, Enum):
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"
