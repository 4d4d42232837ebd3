"""
Data-access interfaces and their SQLAlchemy implementations.
"""
from .interfaces import (
    TestReader,
    AttemptStore,
    AnswerStore,
    BatteryWeightStore,
    ProgressStore,
    UnitOfWork,
)
from .sql import (
    SqlTestReader,
    SqlAttemptStore,
    SqlAnswerStore,
    SqlBatteryWeightStore,
    SqlProgressStore,
)

__all__ = [
    "TestReader",
    "AttemptStore",
    "AnswerStore",
    "BatteryWeightStore",
    "ProgressStore",
    "UnitOfWork",
    "SqlTestReader",
    "SqlAttemptStore",
    "SqlAnswerStore",
    "SqlBatteryWeightStore",
    "SqlProgressStore",
]
