# medlab/domains/pat/schemas.py

"""
'pat' 도메인의 Pydantic 스키마를 정의하는 모듈입니다.
"""

from typing import Optional, Literal
from datetime import date, datetime
from pydantic import BaseModel, Field as PydanticField


# =============================================================================
# 1. 환자 (Patient) 스키마
# =============================================================================
class PatientBase(BaseModel):
    document_type: str = PydanticField(max_length=20, description="신분증 종류")
    document_number: str = PydanticField(max_length=50, description="신분증 번호")
    first_name: str = PydanticField(max_length=100, description="이름")
    last_name: str = PydanticField(max_length=100, description="성")
    date_of_birth: date = PydanticField(description="생년월일")
    gender: Optional[Literal["M", "F", "O"]] = PydanticField(default=None, description="성별")
    phone: Optional[str] = PydanticField(default=None, max_length=20)
    email: Optional[str] = PydanticField(default=None, max_length=100)
    blood_type: Optional[str] = PydanticField(default=None, max_length=5)


class PatientCreate(PatientBase):
    pass


class PatientResponse(PatientBase):
    id: int
    is_active: bool
    full_name: str = PydanticField(description="표시용 전체 이름")
    created_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
