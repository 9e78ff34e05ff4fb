# medlab/domains/cat/schemas.py

"""
'cat' 도메인 (검사 카탈로그)의 Pydantic 응답 스키마를 정의하는 모듈입니다.
카탈로그는 워크플로 엔진에 읽기 전용이므로 생성/수정 스키마는 두지 않습니다.
"""

from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field as PydanticField


# =============================================================================
# 1. 검사 분류 / 검체 종류 스키마
# =============================================================================
class ExamCategoryResponse(BaseModel):
    id: int
    code: str
    name: str

    class Config:
        from_attributes = True


class SampleTypeResponse(BaseModel):
    id: int
    code: str
    name: str
    container_type: Optional[str] = None

    class Config:
        from_attributes = True


# =============================================================================
# 2. 검사 항목 (ExamParameter) 스키마
# =============================================================================
class ExamParameterResponse(BaseModel):
    id: int
    exam_type_id: int
    parameter_code: Optional[str] = None
    name: str
    data_type: str = PydanticField(description="numeric/text/boolean/select")
    unit_of_measure: Optional[str] = None
    reference_min: Optional[Decimal] = None
    reference_max: Optional[Decimal] = None
    reference_value_text: Optional[str] = None
    select_options: Optional[List[str]] = None
    is_critical: bool
    is_required: bool
    display_order: int

    class Config:
        from_attributes = True


# =============================================================================
# 3. 검사 종류 (ExamType) 스키마
# =============================================================================
class ExamTypeResponse(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    category_id: int
    sample_type_id: int
    base_price: Decimal
    processing_time_hours: int
    requires_fasting: bool
    is_active: bool

    class Config:
        from_attributes = True


class ExamTypeDetailResponse(ExamTypeResponse):
    """항목 정의를 포함한 검사 종류 (워크플로 엔진이 소비하는 형태)."""
    category: Optional[ExamCategoryResponse] = None
    sample_type: Optional[SampleTypeResponse] = None
    parameters: List[ExamParameterResponse] = []
