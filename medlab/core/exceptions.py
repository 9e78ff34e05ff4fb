# medlab/core/exceptions.py

"""
도메인 예외 체계를 정의하는 모듈입니다.

모든 워크플로 예외는 DomainError를 상속하며 다음 속성을 가집니다:
- kind:        오류 종류 (validation_error / not_found / state_transition_error / persistence_error)
- code:        세부 오류 코드 (EMPTY_EXAM_LIST, INVALID_TRANSITION ...)
- message:     사람이 읽을 수 있는 설명
- detail:      선택적 부가 정보 (dict / list / None)
- http_status: HTTP 상태 코드

서비스 계층은 raise만 하고, main.py에 등록된 핸들러가 응답을 일괄 변환합니다.
"""

from typing import Any, Optional

from fastapi import status


class DomainError(Exception):
    """모든 도메인 예외의 기본 클래스."""

    kind = "error"
    code = "UNKNOWN_ERROR"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        detail: Any = None,
        http_status: Optional[int] = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict:
        body = {"kind": self.kind, "code": self.code, "message": self.message}
        if self.detail is not None:
            body["detail"] = self.detail
        return body


class ValidationError(DomainError):
    """입력값이 형식상 또는 의미상 유효하지 않음. 400."""

    kind = "validation_error"
    code = "VALIDATION_ERROR"
    http_status = status.HTTP_400_BAD_REQUEST


class NotFoundError(DomainError):
    """참조한 주문/검사/결과가 존재하지 않음. 404."""

    kind = "not_found"
    code = "NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND


class StateTransitionError(DomainError):
    """현재 검사 상태에서 허용되지 않는 작업. 409."""

    kind = "state_transition_error"
    code = "INVALID_TRANSITION"
    http_status = status.HTTP_409_CONFLICT


class PersistenceError(DomainError):
    """저장소가 읽기/쓰기를 거부함 (유일성 위반 포함). 500."""

    kind = "persistence_error"
    code = "PERSISTENCE_ERROR"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
