# medlab/domains/cat/routers.py

"""
'cat' 도메인 (검사 카탈로그) 조회 API 엔드포인트를 정의하는 모듈입니다.
"""
from typing import List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import APIRouter, Depends, HTTPException, status

from medlab.core import dependencies as deps

from . import crud as cat_crud
from . import schemas as cat_schemas

router = APIRouter(
    tags=["Exam Catalog (검사 카탈로그)"],
    responses={404: {"description": "Not found"}},
)


@router.get("/exam-types", response_model=List[cat_schemas.ExamTypeResponse], summary="활성 검사 종류 목록 조회")
async def read_exam_types(
    category_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(deps.get_db_session)
):
    """활성 검사 종류 목록을 조회합니다. `category_id`로 분류별 필터링이 가능합니다."""
    return await cat_crud.exam_type.get_catalog(db, category_id=category_id, skip=skip, limit=limit)


@router.get("/exam-types/{exam_type_id}", response_model=cat_schemas.ExamTypeDetailResponse, summary="검사 종류 상세 (항목 포함)")
async def read_exam_type(
    exam_type_id: int, db: AsyncSession = Depends(deps.get_db_session)
):
    db_obj = await cat_crud.exam_type.get_with_parameters(db, id=exam_type_id)
    if not db_obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam type not found")
    return db_obj
