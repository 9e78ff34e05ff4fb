# medlab/domains/lab/workflow.py

"""
검사(OrderExam) 상태 전이 규칙을 정의하는 모듈입니다.

    pending ──collect_sample──▶ sample_collected ──begin_analysis──▶ in_analysis
       │                          │        │                             │
       └──reject──▶ rejected ◀──reject     └──────────complete───────────┤
                                                                         ▼
                                             validated ◀──validate── completed

상태는 문자열로 저장되지만, 바꾸는 경로는 apply_transition() 하나뿐입니다.
표에 없는 (상태, 이벤트) 조합은 StateTransitionError 입니다.
"""

from datetime import datetime, UTC
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from medlab.core.exceptions import StateTransitionError, ValidationError

from .models import ExamStatus


class ExamEvent(str, Enum):
    COLLECT_SAMPLE = "collect_sample"
    BEGIN_ANALYSIS = "begin_analysis"
    COMPLETE = "complete"
    VALIDATE = "validate"
    REJECT = "reject"


TRANSITIONS: Dict[Tuple[ExamStatus, ExamEvent], ExamStatus] = {
    (ExamStatus.PENDING, ExamEvent.COLLECT_SAMPLE): ExamStatus.SAMPLE_COLLECTED,
    (ExamStatus.SAMPLE_COLLECTED, ExamEvent.BEGIN_ANALYSIS): ExamStatus.IN_ANALYSIS,
    # 분석 시작을 따로 기록하지 않고 결과를 바로 입력하는 경우
    (ExamStatus.SAMPLE_COLLECTED, ExamEvent.COMPLETE): ExamStatus.COMPLETED,
    (ExamStatus.IN_ANALYSIS, ExamEvent.COMPLETE): ExamStatus.COMPLETED,
    (ExamStatus.COMPLETED, ExamEvent.VALIDATE): ExamStatus.VALIDATED,
    (ExamStatus.PENDING, ExamEvent.REJECT): ExamStatus.REJECTED,
    (ExamStatus.SAMPLE_COLLECTED, ExamEvent.REJECT): ExamStatus.REJECTED,
}


def _as_status(value: Any) -> ExamStatus:
    try:
        return ExamStatus(value)
    except ValueError:
        raise StateTransitionError(
            f"Unknown exam status '{value}'.",
            code="UNKNOWN_STATUS",
        )


def next_status(current: Any, event: ExamEvent) -> Optional[ExamStatus]:
    """허용된 전이라면 다음 상태를, 아니면 None을 반환합니다."""
    return TRANSITIONS.get((_as_status(current), ExamEvent(event)))


def can_be_analyzed(exam: Any) -> bool:
    """검체가 채취되어 채취 시각이 기록된 검사만 분석을 시작할 수 있습니다."""
    return exam.status == ExamStatus.SAMPLE_COLLECTED.value and exam.sample_collected_at is not None


def ensure_transition(exam: Any, event: ExamEvent) -> ExamStatus:
    """전이가 허용되지 않으면 StateTransitionError를 발생시킵니다."""
    target = next_status(exam.status, event)
    if target is None:
        raise StateTransitionError(
            f"Cannot {ExamEvent(event).value} an exam in status '{exam.status}'.",
            detail={"order_exam_id": exam.id, "status": exam.status, "event": ExamEvent(event).value},
        )
    if event == ExamEvent.BEGIN_ANALYSIS and not can_be_analyzed(exam):
        raise StateTransitionError(
            "Analysis requires a collected sample.",
            code="SAMPLE_NOT_COLLECTED",
            detail={"order_exam_id": exam.id},
        )
    return target


def apply_transition(
    exam: Any,
    event: ExamEvent,
    *,
    actor_id: int,
    at: Optional[datetime] = None,
    reason: Optional[str] = None,
    barcode: Optional[str] = None,
) -> ExamStatus:
    """
    전이를 검증한 뒤 상태와 부수 필드(시각, 행위자, 사유)를 함께 기록합니다.
    DB 반영(flush/commit)은 호출자의 트랜잭션이 담당합니다.
    """
    event = ExamEvent(event)
    if event == ExamEvent.REJECT and not (reason and reason.strip()):
        raise ValidationError("A rejection reason is required.", code="REJECTION_REASON_REQUIRED")

    target = ensure_transition(exam, event)
    at = at or datetime.now(UTC)

    if event == ExamEvent.COLLECT_SAMPLE:
        exam.sample_collected_at = at
        exam.sample_collected_by = actor_id
        if barcode:
            exam.sample_barcode = barcode
    elif event == ExamEvent.BEGIN_ANALYSIS:
        exam.analyzed_at = at
        exam.analyzed_by = actor_id
    elif event == ExamEvent.COMPLETE and exam.analyzed_at is None:
        # 분석 시작 없이 결과를 입력하면 입력 시점을 분석 시각으로 기록
        exam.analyzed_at = at
        exam.analyzed_by = actor_id
    elif event == ExamEvent.VALIDATE:
        exam.validated_at = at
        exam.validated_by = actor_id
    elif event == ExamEvent.REJECT:
        exam.rejection_reason = reason.strip()

    exam.status = target.value
    return target
