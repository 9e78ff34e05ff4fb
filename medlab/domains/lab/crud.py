# medlab/domains/lab/crud.py

"""
'lab' 도메인 (검사 주문 워크플로)의 CRUD 로직을 담당하는 모듈입니다.

- 검사 최종 가격(final_price)은 compute_final_price()에서만 계산하며, 생성/수정 때마다 다시 계산합니다.
- 결과의 이상 여부 필드는 classifier.apply_classification()에서만 기록하며, 생성/수정 때마다 다시 판정합니다.
- 워크플로 서비스가 트랜잭션을 관리하므로 여기서는 기본적으로 flush까지만 수행합니다.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from medlab.core.crud_base import CRUDBase
from medlab.domains.cat import models as cat_models

from . import models as lab_models
from . import schemas as lab_schemas
from .classifier import apply_classification, to_decimal


def compute_final_price(price: Any, discount: Any) -> Decimal:
    """final_price = price - discount. 할인 값이 없으면 0으로 봅니다."""
    return to_decimal(price) - (to_decimal(discount) or Decimal("0"))


# =============================================================================
# 1. 주문 (Order) CRUD
# =============================================================================
class CRUDOrder(CRUDBase[lab_models.Order, lab_schemas.OrderCreate, BaseModel]):
    def __init__(self):
        super().__init__(model=lab_models.Order)

    async def get_with_exams(self, db: AsyncSession, *, id: int) -> Optional[lab_models.Order]:
        """검사 목록을 함께 적재한 주문을 반환합니다."""
        statement = (
            select(self.model)
            .where(self.model.id == id)
            .options(selectinload(self.model.exams))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(statement)
        return result.scalars().one_or_none()

    async def get_filtered_orders(
        self, db: AsyncSession, *, order_filter: lab_schemas.OrderFilter
    ) -> List[lab_models.Order]:
        """
        상태/우선순위/환자 정확 일치 필터와 주문일 기간 필터를 조합해 최신순으로 조회합니다.
        """
        filters = {
            "status": order_filter.status.value if order_filter.status else None,
            "priority": order_filter.priority.value if order_filter.priority else None,
            "patient_id": order_filter.patient_id,
        }
        return await self.get_filtered(
            db,
            filters=filters,
            date_range_field="order_date",
            start_date=order_filter.start_date,
            end_date=order_filter.end_date,
            order_by=("order_date", "id"),
            order_desc=True,
            options=(selectinload(self.model.exams),),
            skip=order_filter.skip,
            limit=order_filter.limit,
        )


order = CRUDOrder()


# =============================================================================
# 2. 주문 검사 (OrderExam) CRUD
# =============================================================================
class CRUDOrderExam(CRUDBase[lab_models.OrderExam, lab_schemas.OrderExamCreate, BaseModel]):
    def __init__(self):
        super().__init__(model=lab_models.OrderExam)

    async def create(
        self, db: AsyncSession, *, obj_in: Union[lab_schemas.OrderExamCreate, Dict[str, Any]], commit: bool = False
    ) -> lab_models.OrderExam:
        """검사 행을 만들면서 최종 가격을 계산합니다."""
        data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump()
        data = {**data, "final_price": compute_final_price(data["price"], data.get("discount"))}
        return await super().create(db, obj_in=data, commit=commit)

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: lab_models.OrderExam,
        obj_in: Union[BaseModel, Dict[str, Any]],
        commit: bool = False
    ) -> lab_models.OrderExam:
        """어떤 필드를 고치든 최종 가격을 다시 계산합니다."""
        data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        data.pop("final_price", None)
        for key, value in data.items():
            setattr(db_obj, key, value)
        db_obj.final_price = compute_final_price(db_obj.price, db_obj.discount)
        return await super().update(db, db_obj=db_obj, obj_in={}, commit=commit)

    async def get_with_details(self, db: AsyncSession, *, id: int) -> Optional[lab_models.OrderExam]:
        """검사 종류(항목 정의 포함)와 결과를 함께 적재합니다."""
        statement = (
            select(self.model)
            .where(self.model.id == id)
            .options(
                selectinload(self.model.exam_type).selectinload(cat_models.ExamType.parameters),
                selectinload(self.model.exam_type).selectinload(cat_models.ExamType.category),
                selectinload(self.model.exam_type).selectinload(cat_models.ExamType.sample_type),
                selectinload(self.model.results),
            )
            .execution_options(populate_existing=True)
        )
        result = await db.execute(statement)
        return result.scalars().one_or_none()


order_exam = CRUDOrderExam()


# =============================================================================
# 3. 검사 결과 (ExamResult) CRUD
# =============================================================================
class CRUDExamResult(CRUDBase[lab_models.ExamResult, lab_schemas.ExamResultInput, BaseModel]):
    def __init__(self):
        super().__init__(model=lab_models.ExamResult)

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: Dict[str, Any],
        parameter: cat_models.ExamParameter,
        commit: bool = False
    ) -> lab_models.ExamResult:
        """결과 행을 만들고 항목 정의로 이상 여부를 판정합니다."""
        db_obj = self.model.model_validate(obj_in)
        apply_classification(db_obj, parameter)
        db.add(db_obj)
        if commit:
            await db.commit()
            await db.refresh(db_obj)
        else:
            await db.flush()
        return db_obj

    async def supersede(
        self, db: AsyncSession, *, db_obj: lab_models.ExamResult, commit: bool = False
    ) -> lab_models.ExamResult:
        """
        정정으로 대체된 결과를 현재 결과에서 제외합니다.
        기록 당시의 판정(is_abnormal, abnormality_type, flags)은 그대로 둡니다.
        """
        return await super().update(db, db_obj=db_obj, obj_in={"is_current": False}, commit=commit)

    async def get_current_for_exam(self, db: AsyncSession, *, order_exam_id: int) -> List[lab_models.ExamResult]:
        statement = (
            select(self.model)
            .where(self.model.order_exam_id == order_exam_id, self.model.is_current)
            .order_by(self.model.id)
        )
        result = await db.execute(statement)
        return result.scalars().all()

    async def get_with_parameter(self, db: AsyncSession, *, id: int) -> Optional[lab_models.ExamResult]:
        statement = (
            select(self.model)
            .where(self.model.id == id)
            .options(selectinload(self.model.parameter))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(statement)
        return result.scalars().one_or_none()


exam_result = CRUDExamResult()
