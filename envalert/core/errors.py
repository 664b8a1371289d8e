"""
Error taxonomy for envalert.

Rule-management errors are raised synchronously to the operator-facing
API; scheduler errors are logged and only surface through the manual
trigger path. A partial dispatch failure is not an exception but a
DispatchResult carrying failed tokens.
"""


class EngineError(Exception):
    """envalert 기본 예외"""


class ValidationError(EngineError):
    """잘못된 규칙 / 경보 정의 (저장 전 거부)"""


class ConflictError(EngineError):
    """동일한 (domain_type, metric, operator, threshold_value) 규칙이 이미 존재"""


class NotFoundError(EngineError):
    """규칙 또는 경보 ID가 존재하지 않음"""


class UpstreamFetchError(EngineError):
    """측정값 샘플러 또는 사용자 레지스트리 호출 실패"""


class DispatchError(EngineError):
    """푸시 전송 계층 전체 실패 (토큰 단위 실패는 DispatchResult로 보고)"""


class SchedulerBusyError(EngineError):
    """이전 실행이 아직 진행 중"""


class FatalSchedulerError(EngineError):
    """틱 전체를 중단시킨 예기치 못한 오류"""
