from perfgate.common.response.code.base_code import BaseCode
from perfgate.common.response.code.failure_code import FailureCode
from perfgate.common.response.code.success_code import SuccessCode

__all__ = [
    'FailureCode',
    'SuccessCode',
    'BaseCode',
]
