from perfgate.common.exception.api_exception import ApiException
from perfgate.common.exception.perf_exception import (
    PerfTestException,
    ConfigurationError,
    TestNotFoundError,
    RunInProgressError,
)

__all__ = [
    'ApiException',
    'PerfTestException',
    'ConfigurationError',
    'TestNotFoundError',
    'RunInProgressError',
]
