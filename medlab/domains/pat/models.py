# medlab/domains/pat/models.py

"""
'pat' 도메인의 데이터베이스 ORM 모델을 정의하는 모듈입니다.
"""

from typing import Optional
from datetime import datetime, date, UTC

from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from sqlmodel import Field, SQLModel, Column


# =============================================================================
# 1. patients 테이블 모델
# =============================================================================
class PatientBase(SQLModel):
    document_type: str = Field(max_length=20, description="신분증 종류 (cedula, passport ...)")
    document_number: str = Field(max_length=50, unique=True, description="신분증 번호")
    first_name: str = Field(max_length=100, description="이름")
    last_name: str = Field(max_length=100, description="성")
    date_of_birth: date = Field(description="생년월일")
    gender: Optional[str] = Field(default=None, max_length=1, description="성별 (M/F/O)")
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = Field(default=None, max_length=100)
    blood_type: Optional[str] = Field(default=None, max_length=5)
    is_active: bool = Field(default=True, description="활성 여부")


class Patient(PatientBase, table=True):
    __tablename__ = "patients"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_by: Optional[int] = Field(default=None, description="등록한 사용자 ID (약한 참조)")
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

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def age(self, today: Optional[date] = None) -> int:
        """기준일(기본: 오늘) 현재 만 나이."""
        today = today or date.today()
        years = today.year - self.date_of_birth.year
        if (today.month, today.day) < (self.date_of_birth.month, self.date_of_birth.day):
            years -= 1
        return years
