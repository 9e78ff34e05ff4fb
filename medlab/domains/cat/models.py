# medlab/domains/cat/models.py

"""
'cat' 도메인 (검사 카탈로그)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.
"""

from enum import Enum
from decimal import Decimal
from typing import Optional, List
from datetime import datetime, UTC

from sqlalchemy import JSON, Numeric
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from sqlmodel import Field, Relationship, SQLModel, Column


class ParameterDataType(str, Enum):
    NUMERIC = "numeric"
    TEXT = "text"
    BOOLEAN = "boolean"
    SELECT = "select"


# =============================================================================
# 1. exam_categories 테이블 모델
# =============================================================================
class ExamCategory(SQLModel, table=True):
    __tablename__ = "exam_categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(max_length=20, unique=True)
    name: str = Field(max_length=100)
    description: Optional[str] = Field(default=None)
    display_order: int = Field(default=0)
    is_active: bool = Field(default=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )

    exam_types: List["ExamType"] = Relationship(back_populates="category")


# =============================================================================
# 2. sample_types 테이블 모델
# =============================================================================
class SampleType(SQLModel, table=True):
    __tablename__ = "sample_types"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(max_length=20, unique=True)
    name: str = Field(max_length=100)
    description: Optional[str] = Field(default=None)
    container_type: Optional[str] = Field(default=None, max_length=100, description="용기 종류")
    storage_instructions: Optional[str] = Field(default=None, description="보관 방법")
    is_active: bool = Field(default=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )

    exam_types: List["ExamType"] = Relationship(back_populates="sample_type")


# =============================================================================
# 3. exam_types 테이블 모델
# =============================================================================
class ExamType(SQLModel, table=True):
    __tablename__ = "exam_types"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(max_length=50, unique=True, description="검사 코드 (예: HB)")
    name: str = Field(max_length=200, description="검사명")
    description: Optional[str] = Field(default=None)
    category_id: int = Field(foreign_key="exam_categories.id")
    sample_type_id: int = Field(foreign_key="sample_types.id")
    base_price: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False), description="기본 가격")
    preparation_instructions: Optional[str] = Field(default=None)
    processing_time_hours: int = Field(default=24)
    requires_fasting: bool = Field(default=False)
    fasting_hours: Optional[int] = Field(default=None)
    is_active: bool = Field(default=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="레코드 마지막 업데이트 일시"
    )

    # --- 관계 정의 ---
    category: Optional[ExamCategory] = Relationship(back_populates="exam_types")
    sample_type: Optional[SampleType] = Relationship(back_populates="exam_types")
    parameters: List["ExamParameter"] = Relationship(
        back_populates="exam_type",
        sa_relationship_kwargs={"order_by": "ExamParameter.display_order"},
    )


# =============================================================================
# 4. exam_parameters 테이블 모델
# =============================================================================
class ExamParameter(SQLModel, table=True):
    __tablename__ = "exam_parameters"

    id: Optional[int] = Field(default=None, primary_key=True)
    exam_type_id: int = Field(foreign_key="exam_types.id", index=True)
    parameter_code: Optional[str] = Field(default=None, max_length=50)
    name: str = Field(max_length=200, description="항목명")
    data_type: str = Field(default=ParameterDataType.NUMERIC.value, max_length=20, description="numeric/text/boolean/select")
    unit_of_measure: Optional[str] = Field(default=None, max_length=50, description="측정 단위")
    reference_min: Optional[Decimal] = Field(default=None, sa_column=Column(Numeric(12, 4)), description="참고 범위 하한")
    reference_max: Optional[Decimal] = Field(default=None, sa_column=Column(Numeric(12, 4)), description="참고 범위 상한")
    reference_value_text: Optional[str] = Field(default=None, description="텍스트형 참고값 (예: Negative)")
    select_options: Optional[List[str]] = Field(default=None, sa_column=Column(JSON), description="select 형식의 선택지")
    is_critical: bool = Field(default=False, description="이상값일 때 위급(critical)으로 표시할지 여부")
    is_required: bool = Field(default=True)
    display_order: int = Field(default=0)
    is_active: bool = Field(default=True)

    exam_type: Optional[ExamType] = Relationship(back_populates="parameters")
