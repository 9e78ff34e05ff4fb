# medlab/domains/lab/models.py

"""
'lab' 도메인의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

상태 값은 숫자 ID가 아닌 문자열로 저장합니다.
행위자(actor) ID는 약한 참조이므로 외래 키를 두지 않습니다.
"""

from enum import Enum
from decimal import Decimal
from typing import Optional, List
from datetime import datetime, date, UTC

from sqlalchemy import Numeric, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from sqlmodel import Field, Relationship, SQLModel, Column

from medlab.domains.cat.models import ExamType, ExamParameter


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderPriority(str, Enum):
    NORMAL = "normal"
    URGENT = "urgent"
    STAT = "stat"


class ExamStatus(str, Enum):
    PENDING = "pending"
    SAMPLE_COLLECTED = "sample_collected"
    IN_ANALYSIS = "in_analysis"
    COMPLETED = "completed"
    VALIDATED = "validated"
    REJECTED = "rejected"


class AbnormalityType(str, Enum):
    LOW = "low"
    HIGH = "high"
    ABNORMAL = "abnormal"
    NONE = "none"


# =============================================================================
# 1. orders 테이블 모델
# =============================================================================
class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_number: str = Field(max_length=30, unique=True, index=True, description="주문 번호 (ORD-YYYYMMDD-NNNNNN), 발급 후 변경 불가")
    patient_id: int = Field(foreign_key="patients.id", index=True)
    order_date: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False, index=True),
        description="주문 일시"
    )
    status: str = Field(default=OrderStatus.PENDING.value, max_length=20, index=True)
    priority: str = Field(default=OrderPriority.NORMAL.value, max_length=20)
    referring_doctor: Optional[str] = Field(default=None, max_length=200)
    doctor_phone: Optional[str] = Field(default=None, max_length=20)
    diagnosis: Optional[str] = Field(default=None)
    clinical_notes: Optional[str] = Field(default=None)

    # 금액 집계는 정산 쪽 소관이며 워크플로에서는 변경하지 않습니다.
    subtotal: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(19, 4), nullable=False, server_default="0"))
    discount_amount: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(19, 4), nullable=False, server_default="0"))
    tax_amount: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(19, 4), nullable=False, server_default="0"))
    total_amount: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(19, 4), nullable=False, server_default="0"))

    created_by: int = Field(description="주문 생성자 ID")
    completed_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    cancelled_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    cancelled_by: Optional[int] = Field(default=None)
    cancellation_reason: Optional[str] = Field(default=None)
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
    exams: List["OrderExam"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={'cascade': 'all, delete-orphan', 'order_by': 'OrderExam.id'}
    )


# =============================================================================
# 2. order_exams 테이블 모델
# =============================================================================
class OrderExam(SQLModel, table=True):
    __tablename__ = "order_exams"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True)
    exam_type_id: int = Field(foreign_key="exam_types.id", index=True)
    status: str = Field(default=ExamStatus.PENDING.value, max_length=20, index=True)

    sample_collected_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    sample_collected_by: Optional[int] = Field(default=None)
    sample_barcode: Optional[str] = Field(default=None, max_length=100)
    analyzed_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    analyzed_by: Optional[int] = Field(default=None)
    validated_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    validated_by: Optional[int] = Field(default=None)

    price: Decimal = Field(sa_column=Column(Numeric(19, 4), nullable=False))
    discount: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(19, 4), nullable=False, server_default="0"))
    final_price: Decimal = Field(sa_column=Column(Numeric(19, 4), nullable=False), description="price - discount (쓰기 시마다 재계산)")

    notes: Optional[str] = Field(default=None)
    rejection_reason: Optional[str] = Field(default=None)
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
    order: Optional[Order] = Relationship(back_populates="exams")
    exam_type: Optional[ExamType] = Relationship()
    results: List["ExamResult"] = Relationship(
        back_populates="order_exam",
        sa_relationship_kwargs={'cascade': 'all, delete-orphan', 'order_by': 'ExamResult.id'}
    )


# =============================================================================
# 3. exam_results 테이블 모델
# =============================================================================
class ExamResult(SQLModel, table=True):
    __tablename__ = "exam_results"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_exam_id: int = Field(foreign_key="order_exams.id", index=True)
    exam_parameter_id: int = Field(foreign_key="exam_parameters.id", index=True)

    # 항목의 data_type에 해당하는 값 하나만 유효합니다.
    value_numeric: Optional[Decimal] = Field(default=None, sa_column=Column(Numeric(12, 4)))
    value_text: Optional[str] = Field(default=None)
    value_boolean: Optional[bool] = Field(default=None)

    # 파생 필드: classifier.apply_classification 에서만 기록합니다.
    is_abnormal: bool = Field(default=False)
    abnormality_type: str = Field(default=AbnormalityType.NONE.value, max_length=20)
    is_critical: bool = Field(default=False)
    flags: str = Field(default="", max_length=10)

    technician_notes: Optional[str] = Field(default=None)
    version: int = Field(default=1)
    is_current: bool = Field(default=True, index=True)
    entered_by: int = Field(description="결과 입력자 ID")
    entered_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False)
    )
    validated_by: Optional[int] = Field(default=None)
    validated_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
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
    order_exam: Optional[OrderExam] = Relationship(back_populates="results")
    parameter: Optional[ExamParameter] = Relationship()

    @property
    def is_validated(self) -> bool:
        return self.validated_at is not None

    @property
    def display_value(self) -> str:
        """화면 표시용 값: 숫자는 소수 둘째 자리, 불리언은 Positive/Negative."""
        if self.value_numeric is not None:
            return f"{Decimal(str(self.value_numeric)):.2f}"
        if self.value_boolean is not None:
            return "Positive" if self.value_boolean else "Negative"
        return self.value_text or ""


# =============================================================================
# 4. id_sequences 테이블 모델 (날짜별 식별 번호 카운터)
# =============================================================================
class IdSequence(SQLModel, table=True):
    __tablename__ = "id_sequences"
    __table_args__ = (UniqueConstraint("prefix", "scope_date", name="uq_id_sequences_prefix_scope_date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    prefix: str = Field(max_length=10)
    scope_date: date
    last_value: int = Field(default=0)
