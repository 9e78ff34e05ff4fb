# medlab/domains/pat/crud.py

"""
'pat' 도메인의 CRUD 로직을 담당하는 모듈입니다.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from medlab.core.crud_base import CRUDBase
from medlab.core.exceptions import ValidationError

from . import models as pat_models
from . import schemas as pat_schemas

logger = logging.getLogger(__name__)


# =============================================================================
# 1. 환자 (Patient) CRUD
# =============================================================================
class CRUDPatient(CRUDBase[pat_models.Patient, pat_schemas.PatientCreate, pat_schemas.PatientCreate]):
    def __init__(self):
        super().__init__(model=pat_models.Patient)

    async def get_by_document(self, db: AsyncSession, *, document_number: str) -> Optional[pat_models.Patient]:
        """신분증 번호로 조회합니다."""
        statement = select(self.model).where(self.model.document_number == document_number)
        result = await db.execute(statement)
        return result.scalars().one_or_none()

    async def get_active(self, db: AsyncSession, *, id: int) -> Optional[pat_models.Patient]:
        """활성 상태의 환자만 반환합니다. 비활성 환자는 주문할 수 없습니다."""
        patient = await self.get(db, id)
        if patient is None or not patient.is_active:
            return None
        return patient

    async def search_active(
        self, db: AsyncSession, *, document: Optional[str] = None, skip: int = 0, limit: int = 100
    ) -> List[pat_models.Patient]:
        """
        활성 환자 목록. `document`가 있으면 신분증 번호 부분 일치로 좁힙니다.
        """
        statement = select(self.model).where(self.model.is_active)
        if document:
            statement = statement.where(self.model.document_number.contains(document))
        statement = statement.order_by(self.model.id).offset(skip).limit(limit)
        result = await db.execute(statement)
        return result.scalars().all()

    async def create(self, db: AsyncSession, *, obj_in: pat_schemas.PatientCreate, actor_id: int) -> pat_models.Patient:
        """신분증 번호 중복을 확인하고 생성합니다."""
        duplicate_error = ValidationError(
            "Patient with this document number already exists.",
            code="DUPLICATE_DOCUMENT",
            detail={"document_number": obj_in.document_number},
        )
        if await self.get_by_document(db, document_number=obj_in.document_number):
            raise duplicate_error
        try:
            return await super().create(db, obj_in={**obj_in.model_dump(), "created_by": actor_id})
        except IntegrityError as e:
            # 확인과 INSERT 사이에 같은 번호가 먼저 저장된 경우
            await db.rollback()
            logger.warning("IntegrityError during patient creation (document %s): %s", obj_in.document_number, e)
            raise duplicate_error


patient = CRUDPatient()
