from perfgate.common.response.code.base_code import BaseCode

class FailureCode(BaseCode):
    BAD_REQUEST = ("잘못된 요청입니다", 400)
    TEST_NOT_FOUND = ("존재하지 않는 성능 테스트입니다", 404)
    RESULT_NOT_FOUND = ("존재하지 않는 테스트 결과입니다", 404)
    INVALID_TEST_CONFIG = ("성능 테스트 설정이 올바르지 않습니다", 400)
    TEST_ALREADY_RUNNING = ("이미 실행 중인 성능 테스트입니다", 409)
    INTERNAL_SERVER_ERROR = ("서버 내부 오류가 발생했습니다", 500)
