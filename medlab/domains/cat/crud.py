# medlab/domains/cat/crud.py

"""
'cat' 도메인 (검사 카탈로그)의 조회 로직을 담당하는 모듈입니다.
카탈로그는 읽기 전용이며, 워크플로 엔진은 여기서 검사 종류와 항목 정의를 가져갑니다.
"""

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from medlab.core.crud_base import CRUDBase

from . import models as cat_models


# =============================================================================
# 1. 검사 종류 (ExamType) CRUD
# =============================================================================
class CRUDExamType(CRUDBase[cat_models.ExamType, BaseModel, BaseModel]):
    def __init__(self):
        super().__init__(model=cat_models.ExamType)

    async def get_with_parameters(self, db: AsyncSession, *, id: int) -> Optional[cat_models.ExamType]:
        """항목 정의, 분류, 검체 종류를 함께 적재한 검사 종류를 반환합니다."""
        statement = (
            select(self.model)
            .where(self.model.id == id)
            .options(
                selectinload(self.model.parameters),
                selectinload(self.model.category),
                selectinload(self.model.sample_type),
            )
            .execution_options(populate_existing=True)
        )
        result = await db.execute(statement)
        return result.scalars().one_or_none()

    async def get_active_by_ids(self, db: AsyncSession, *, ids: Iterable[int]) -> Dict[int, cat_models.ExamType]:
        """활성 상태인 검사 종류를 ID 기준 딕셔너리로 반환합니다."""
        id_list = list(set(ids))
        if not id_list:
            return {}
        statement = select(self.model).where(self.model.id.in_(id_list), self.model.is_active)
        result = await db.execute(statement)
        return {exam_type.id: exam_type for exam_type in result.scalars().all()}

    async def get_catalog(
        self, db: AsyncSession, *, category_id: Optional[int] = None, skip: int = 0, limit: int = 100
    ) -> List[cat_models.ExamType]:
        """활성 검사 종류 목록 (선택적으로 분류별)."""
        filter_kwargs = {"is_active": True}
        if category_id is not None:
            filter_kwargs["category_id"] = category_id
        return await self.get_multi(db, skip=skip, limit=limit, **filter_kwargs)


exam_type = CRUDExamType()

