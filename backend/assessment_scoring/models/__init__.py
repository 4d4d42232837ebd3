"""
Models package for the scoring core.
"""
from .base import Base, engine, SessionLocal
from .models import (
    Test,
    Question,
    Option,
    TestAttempt,
    AttemptAnswer,
    BatteryTest,
    BatteryProgress,
)

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "Test",
    "Question",
    "Option",
    "TestAttempt",
    "AttemptAnswer",
    "BatteryTest",
    "BatteryProgress",
]
