from perfgate.common.response.code import FailureCode


class PerfTestException(Exception):
    """성능 테스트 엔진 예외 기본 클래스"""
    code: FailureCode = FailureCode.BAD_REQUEST

    def __init__(self, message: str = None):
        self.message = message or self.code.message()
        super().__init__(self.message)


class ConfigurationError(PerfTestException):
    """실행 전에 검출되는 설정 오류 (워커 시작 전 즉시 실패)"""
    code = FailureCode.INVALID_TEST_CONFIG


class TestNotFoundError(ConfigurationError):
    """등록되지 않은 테스트 ID"""
    __test__ = False
    code = FailureCode.TEST_NOT_FOUND

    def __init__(self, test_id: str):
        self.test_id = test_id
        super().__init__(f"Test not found: {test_id}")


class RunInProgressError(PerfTestException):
    """같은 테스트 ID의 실행이 이미 진행 중"""
    code = FailureCode.TEST_ALREADY_RUNNING

    def __init__(self, test_id: str):
        self.test_id = test_id
        super().__init__(f"Test is already running: {test_id}")
