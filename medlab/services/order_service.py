# medlab/services/order_service.py

"""
검사 주문(Order)의 생성, 조회, 취소를 조정하는 서비스 모듈입니다.

주문 생성은 다음을 하나의 트랜잭션으로 처리합니다.
1. 환자와 모든 검사 종류의 존재/활성 여부 확인
2. 주문 번호 발급 (ORD-YYYYMMDD-NNNNNN)
3. 주문 행과 모든 검사 행(pending, 최종 가격 계산) 저장

어느 단계에서든 실패하면 주문 전체가 롤백되며, 일부만 저장된 주문은 남지 않습니다.
"""

import logging
from datetime import datetime, UTC
from decimal import Decimal
from typing import List, Optional

from fastapi import Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from medlab.core import dependencies as deps
from medlab.core.config import settings
from medlab.core.database import atomic
from medlab.core.exceptions import NotFoundError, StateTransitionError, ValidationError
from medlab.domains.pat import crud as pat_crud
from medlab.domains.cat import crud as cat_crud
from medlab.domains.lab import crud as lab_crud
from medlab.domains.lab import models as lab_models
from medlab.domains.lab import schemas as lab_schemas
from medlab.domains.lab.identifiers import get_order_number_generator
from medlab.domains.lab.workflow import ExamEvent, apply_transition

logger = logging.getLogger(__name__)


class OrderService:
    """
    주문 단위의 트랜잭션을 조정하는 서비스 클래스입니다.
    """

    def __init__(self, db: AsyncSession, number_generator=None):
        """
        Args:
            db (AsyncSession): 요청 범위의 데이터베이스 세션.
            number_generator: 주문 번호 생성기. 생략하면 설정(IDENTIFIER_STRATEGY)을 따릅니다.
        """
        self.db = db
        self.number_generator = number_generator or get_order_number_generator()

    @staticmethod
    def _validate_exam_lines(exams: List[lab_schemas.OrderExamCreate]) -> None:
        if not exams:
            raise ValidationError("An order requires at least one exam.", code="EMPTY_EXAM_LIST")

        for index, line in enumerate(exams):
            if line.price is None or line.price <= 0:
                raise ValidationError(
                    "Exam price must be greater than zero.",
                    code="INVALID_PRICE",
                    detail={"index": index, "exam_type_id": line.exam_type_id},
                )
            discount = line.discount if line.discount is not None else Decimal("0")
            if discount < 0 or discount > line.price:
                raise ValidationError(
                    "Exam discount must be between zero and the exam price.",
                    code="INVALID_DISCOUNT",
                    detail={"index": index, "exam_type_id": line.exam_type_id},
                )

    async def create_order(self, order_in: lab_schemas.OrderCreate, actor_id: int) -> lab_models.Order:
        """
        주문과 모든 검사를 하나의 트랜잭션으로 생성합니다.

        Args:
            order_in (OrderCreate): 환자, 우선순위, 검사 목록을 담은 요청.
            actor_id (int): 주문을 생성하는 행위자 ID.

        Returns:
            Order: 검사 목록이 적재된 주문.

        Raises:
            ValidationError: 검사 목록이 비었거나, 가격/할인이 잘못되었거나,
                환자 또는 검사 종류가 없거나 비활성일 때.
            PersistenceError: 저장소가 쓰기를 거부했을 때 (전체 롤백).
        """
        self._validate_exam_lines(order_in.exams)

        async with atomic(self.db, "order creation"):
            patient = await pat_crud.patient.get_active(self.db, id=order_in.patient_id)
            if patient is None:
                raise ValidationError(
                    "Patient does not exist or is inactive.",
                    code="INVALID_REFERENCE",
                    detail={"patient_id": order_in.patient_id},
                )

            requested_ids = [line.exam_type_id for line in order_in.exams]
            exam_types = await cat_crud.exam_type.get_active_by_ids(self.db, ids=requested_ids)
            missing_ids = sorted(set(requested_ids) - set(exam_types))
            if missing_ids:
                raise ValidationError(
                    "Exam types do not exist or are inactive.",
                    code="INVALID_REFERENCE",
                    detail={"exam_type_ids": missing_ids},
                )

            order_date = datetime.now(UTC)
            order_number = await self.number_generator.next(
                self.db, settings.ORDER_NUMBER_PREFIX, order_date.date()
            )

            order_data = order_in.model_dump(exclude={"exams"})
            order_data.update(
                order_number=order_number,
                order_date=order_date,
                priority=order_in.priority.value,
                status=lab_models.OrderStatus.PENDING.value,
                created_by=actor_id,
            )
            db_order = await lab_crud.order.create(self.db, obj_in=order_data, commit=False)
            order_id = db_order.id

            for line in order_in.exams:
                await lab_crud.order_exam.create(
                    self.db,
                    obj_in={
                        **line.model_dump(),
                        "order_id": order_id,
                        "status": lab_models.ExamStatus.PENDING.value,
                    },
                )

        logger.info("Order %s created with %d exam(s) by actor %s.", order_number, len(order_in.exams), actor_id)
        return await lab_crud.order.get_with_exams(self.db, id=order_id)

    async def list_orders(self, order_filter: Optional[lab_schemas.OrderFilter] = None) -> List[lab_models.Order]:
        """상태, 우선순위, 환자, 주문일 기간으로 필터링한 주문을 최신순으로 반환합니다."""
        return await lab_crud.order.get_filtered_orders(self.db, order_filter=order_filter or lab_schemas.OrderFilter())

    async def get_order(self, order_id: int) -> lab_models.Order:
        db_order = await lab_crud.order.get_with_exams(self.db, id=order_id)
        if db_order is None:
            raise NotFoundError("Order not found.", code="ORDER_NOT_FOUND", detail={"order_id": order_id})
        return db_order

    async def cancel_order(self, order_id: int, actor_id: int, reason: str) -> lab_models.Order:
        """
        대기(pending) 주문을 취소합니다.

        아직 채취 전(pending)인 검사는 취소 사유와 함께 반려(rejected)되며,
        이미 채취나 분석이 진행된 검사가 있으면 취소할 수 없습니다.

        Raises:
            NotFoundError: 주문이 없을 때.
            StateTransitionError: 주문이 pending이 아니거나 진행 중인 검사가 있을 때.
            ValidationError: 사유가 비어 있을 때.
        """
        if not (reason and reason.strip()):
            raise ValidationError("A cancellation reason is required.", code="CANCELLATION_REASON_REQUIRED")

        async with atomic(self.db, "order cancellation"):
            db_order = await self.get_order(order_id)
            if db_order.status != lab_models.OrderStatus.PENDING.value:
                raise StateTransitionError(
                    f"Cannot cancel an order in status '{db_order.status}'.",
                    detail={"order_id": order_id, "status": db_order.status},
                )

            closed_statuses = {lab_models.ExamStatus.PENDING.value, lab_models.ExamStatus.REJECTED.value}
            started = [exam.id for exam in db_order.exams if exam.status not in closed_statuses]
            if started:
                raise StateTransitionError(
                    "Cannot cancel an order whose exams are already in progress.",
                    code="EXAMS_IN_PROGRESS",
                    detail={"order_id": order_id, "order_exam_ids": started},
                )

            now = datetime.now(UTC)
            for exam in db_order.exams:
                if exam.status == lab_models.ExamStatus.PENDING.value:
                    apply_transition(exam, ExamEvent.REJECT, actor_id=actor_id, at=now, reason=f"Order cancelled: {reason.strip()}")
                    self.db.add(exam)

            await lab_crud.order.update(
                self.db,
                db_obj=db_order,
                obj_in={
                    "status": lab_models.OrderStatus.CANCELLED.value,
                    "cancelled_at": now,
                    "cancelled_by": actor_id,
                    "cancellation_reason": reason.strip(),
                },
                commit=False,
            )

        logger.info("Order %s cancelled by actor %s.", db_order.order_number, actor_id)
        return await lab_crud.order.get_with_exams(self.db, id=order_id)


def get_order_service(db: AsyncSession = Depends(deps.get_db_session)) -> OrderService:
    """FastAPI 의존성: 요청 세션에 묶인 OrderService를 반환합니다."""
    return OrderService(db)
