# medlab/domains/lab/schemas.py

"""
'lab' 도메인 (검사 주문 워크플로)의 Pydantic 스키마를 정의하는 모듈입니다.

스키마는 구조(타입, 필수 여부)만 검사합니다.
가격 > 0, 할인 범위, 빈 검사 목록 같은 업무 규칙은 서비스 계층에서 ValidationError로 처리합니다.
이상 여부(is_abnormal, abnormality_type, is_critical, flags)는 항상 파생 값이므로
입력 스키마에 존재하지 않으며, 보내면 거부됩니다.
"""

from decimal import Decimal
from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel, Field as PydanticField, field_validator

from medlab.domains.cat.schemas import ExamTypeDetailResponse

from .models import OrderStatus, OrderPriority, ExamStatus


# =============================================================================
# 1. 주문 (Order) 요청 스키마
# =============================================================================
class OrderExamCreate(BaseModel):
    exam_type_id: int = PydanticField(description="검사 종류 ID")
    price: Decimal = PydanticField(description="검사 가격 (0보다 커야 함)")
    discount: Decimal = PydanticField(default=Decimal("0"), description="할인 금액 (0 이상, 가격 이하)")
    notes: Optional[str] = PydanticField(default=None, description="비고")


class OrderCreate(BaseModel):
    patient_id: int = PydanticField(description="환자 ID")
    priority: OrderPriority = PydanticField(default=OrderPriority.NORMAL, description="우선순위 (normal/urgent/stat)")
    referring_doctor: Optional[str] = PydanticField(default=None, max_length=200, description="의뢰 의사")
    doctor_phone: Optional[str] = PydanticField(default=None, max_length=20, description="의뢰 의사 연락처")
    diagnosis: Optional[str] = PydanticField(default=None, description="진단명")
    clinical_notes: Optional[str] = PydanticField(default=None, description="임상 메모")
    exams: List[OrderExamCreate] = PydanticField(default_factory=list, description="요청 검사 목록 (1개 이상)")


class OrderFilter(BaseModel):
    """주문 목록 조회 필터. 값이 없는 필드는 조건에서 제외됩니다."""
    status: Optional[OrderStatus] = None
    priority: Optional[OrderPriority] = None
    patient_id: Optional[int] = None
    start_date: Optional[date] = PydanticField(default=None, description="주문일 시작 (해당일 00:00:00 포함)")
    end_date: Optional[date] = PydanticField(default=None, description="주문일 종료 (해당일 끝까지 포함)")
    skip: int = PydanticField(default=0, ge=0)
    limit: int = PydanticField(default=100, ge=1, le=1000)


class OrderCancel(BaseModel):
    reason: str = PydanticField(min_length=1, description="취소 사유")


# =============================================================================
# 2. 검사 (OrderExam) 워크플로 요청 스키마
# =============================================================================
class SampleCollect(BaseModel):
    sample_barcode: Optional[str] = PydanticField(default=None, max_length=100, description="검체 바코드")


class ExamReject(BaseModel):
    reason: str = PydanticField(description="반려 사유 (필수)")


class ExamResultInput(BaseModel):
    exam_parameter_id: int = PydanticField(description="검사 항목 ID")
    value_numeric: Optional[Decimal] = PydanticField(default=None, description="숫자형 값")
    value_text: Optional[str] = PydanticField(default=None, description="텍스트/선택형 값")
    value_boolean: Optional[bool] = PydanticField(default=None, description="불리언형 값")
    technician_notes: Optional[str] = PydanticField(default=None, description="검사자 메모")

    class Config:
        extra = "forbid"


class ResultsSubmit(BaseModel):
    results: List[ExamResultInput] = PydanticField(description="입력할 결과 목록")


class ResultCorrect(BaseModel):
    value_numeric: Optional[Decimal] = None
    value_text: Optional[str] = None
    value_boolean: Optional[bool] = None
    technician_notes: Optional[str] = None

    class Config:
        extra = "forbid"


# =============================================================================
# 3. 응답 스키마
# =============================================================================
class ExamResultResponse(BaseModel):
    id: int
    order_exam_id: int
    exam_parameter_id: int
    value_numeric: Optional[Decimal] = None
    value_text: Optional[str] = None
    value_boolean: Optional[bool] = None
    display_value: str
    is_abnormal: bool
    abnormality_type: str
    is_critical: bool
    flags: str
    technician_notes: Optional[str] = None
    version: int
    is_current: bool
    entered_by: int
    entered_at: datetime
    validated_by: Optional[int] = None
    validated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderExamResponse(BaseModel):
    id: int
    order_id: int
    exam_type_id: int
    status: ExamStatus
    sample_collected_at: Optional[datetime] = None
    sample_collected_by: Optional[int] = None
    sample_barcode: Optional[str] = None
    analyzed_at: Optional[datetime] = None
    analyzed_by: Optional[int] = None
    validated_at: Optional[datetime] = None
    validated_by: Optional[int] = None
    price: Decimal
    discount: Decimal
    final_price: Decimal
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None

    class Config:
        from_attributes = True


class OrderExamDetailResponse(OrderExamResponse):
    """항목 정의와 현재 결과를 포함한 검사 상세."""
    exam_type: Optional[ExamTypeDetailResponse] = None
    results: List[ExamResultResponse] = []

    @field_validator("results")
    @classmethod
    def keep_current_results(cls, value: List[ExamResultResponse]) -> List[ExamResultResponse]:
        return [result for result in value if result.is_current]


class OrderResponse(BaseModel):
    id: int
    order_number: str
    patient_id: int
    order_date: datetime
    status: OrderStatus
    priority: OrderPriority
    referring_doctor: Optional[str] = None
    doctor_phone: Optional[str] = None
    diagnosis: Optional[str] = None
    clinical_notes: Optional[str] = None
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    created_by: int
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[int] = None
    cancellation_reason: Optional[str] = None
    exams: List[OrderExamResponse] = []

    class Config:
        from_attributes = True
