from perfgate.services.test_registry import TestRegistry
from perfgate.services.statistics_service import get_statistics, get_health, run_regression

__all__ = [
    "TestRegistry",
    "get_statistics",
    "get_health",
    "run_regression",
]
