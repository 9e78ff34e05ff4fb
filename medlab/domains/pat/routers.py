# medlab/domains/pat/routers.py

"""
'pat' 도메인 (환자) 관련 API 엔드포인트를 정의하는 모듈입니다.
"""
from typing import List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import APIRouter, Depends, HTTPException, status

from medlab.core import dependencies as deps

from . import crud as pat_crud
from . import schemas as pat_schemas

router = APIRouter(
    tags=["Patients (환자)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 환자 (Patient) 라우터
# =============================================================================
@router.post("/patients", response_model=pat_schemas.PatientResponse, status_code=status.HTTP_201_CREATED, summary="환자 등록")
async def create_patient(
    patient_in: pat_schemas.PatientCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    actor_id: int = Depends(deps.get_current_actor_id),
):
    return await pat_crud.patient.create(db=db, obj_in=patient_in, actor_id=actor_id)


@router.get("/patients", response_model=List[pat_schemas.PatientResponse], summary="활성 환자 목록 조회 (신분증 번호 검색)")
async def read_patients(
    document: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(deps.get_db_session)
):
    """`document`로 신분증 번호 부분 일치 검색이 가능합니다."""
    return await pat_crud.patient.search_active(db, document=document, skip=skip, limit=limit)


@router.get("/patients/{patient_id}", response_model=pat_schemas.PatientResponse, summary="특정 환자 조회")
async def read_patient(
    patient_id: int, db: AsyncSession = Depends(deps.get_db_session)
):
    db_obj = await pat_crud.patient.get(db=db, id=patient_id)
    if not db_obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return db_obj
