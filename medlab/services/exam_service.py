# medlab/services/exam_service.py

"""
검사(OrderExam) 워크플로와 결과 입력 파이프라인을 담당하는 서비스 모듈입니다.

결과 입력(submit_results)은 하나의 트랜잭션으로 처리됩니다.
1. 검사 조회 (없으면 NotFoundError)
2. completed 전이 가능 여부 확인
3. 각 결과: 항목이 검사 종류에 속하는지 확인 → 데이터 형식에 맞는 값 선택 → 판정 → 저장
4. 검사를 completed로 전이

결과 확인(validate_results)은 별도의 트랜잭션입니다.
"""

import logging
from datetime import datetime, UTC
from typing import Any, Dict, List

from fastapi import Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from medlab.core import dependencies as deps
from medlab.core.database import atomic
from medlab.core.exceptions import NotFoundError, StateTransitionError, ValidationError
from medlab.domains.cat.models import ExamParameter, ParameterDataType
from medlab.domains.lab import crud as lab_crud
from medlab.domains.lab import models as lab_models
from medlab.domains.lab import schemas as lab_schemas
from medlab.domains.lab.workflow import ExamEvent, apply_transition, ensure_transition

logger = logging.getLogger(__name__)


def resolve_result_values(item: Any, parameter: ExamParameter) -> Dict[str, Any]:
    """
    항목의 data_type에 해당하는 값 하나만 남기고 나머지 값 슬롯은 비웁니다.

    - numeric: value_numeric 필수
    - text:    value_text 필수
    - select:  value_text 필수, select_options 중 하나여야 함
    - boolean: value_boolean 필수
    """
    detail = {"exam_parameter_id": parameter.id, "data_type": parameter.data_type}
    values = {"value_numeric": None, "value_text": None, "value_boolean": None}

    if parameter.data_type == ParameterDataType.NUMERIC.value:
        if item.value_numeric is None:
            raise ValidationError("A numeric value is required for this parameter.", code="MISSING_VALUE", detail=detail)
        values["value_numeric"] = item.value_numeric

    elif parameter.data_type == ParameterDataType.BOOLEAN.value:
        if item.value_boolean is None:
            raise ValidationError("A boolean value is required for this parameter.", code="MISSING_VALUE", detail=detail)
        values["value_boolean"] = item.value_boolean

    elif parameter.data_type in (ParameterDataType.TEXT.value, ParameterDataType.SELECT.value):
        if item.value_text is None or not item.value_text.strip():
            raise ValidationError("A text value is required for this parameter.", code="MISSING_VALUE", detail=detail)
        if parameter.data_type == ParameterDataType.SELECT.value and item.value_text not in (parameter.select_options or []):
            raise ValidationError(
                "Value is not one of the parameter's options.",
                code="INVALID_OPTION",
                detail={**detail, "options": parameter.select_options or []},
            )
        values["value_text"] = item.value_text

    else:
        raise ValidationError("Unsupported parameter data type.", code="UNSUPPORTED_DATA_TYPE", detail=detail)

    return values


class ExamWorkflowService:
    """
    검사 상태 전이와 결과 기록을 처리하는 서비스 클래스입니다.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_order_exam(self, order_exam_id: int) -> lab_models.OrderExam:
        """검사 종류(항목 정의)와 결과를 함께 적재한 검사를 반환합니다."""
        exam = await lab_crud.order_exam.get_with_details(self.db, id=order_exam_id)
        if exam is None:
            raise NotFoundError(
                "Order exam not found.",
                code="ORDER_EXAM_NOT_FOUND",
                detail={"order_exam_id": order_exam_id},
            )
        return exam

    async def _transition(self, order_exam_id: int, event: ExamEvent, actor_id: int, **kwargs) -> lab_models.OrderExam:
        async with atomic(self.db, f"exam {event.value}"):
            exam = await self.get_order_exam(order_exam_id)
            previous = exam.status
            apply_transition(exam, event, actor_id=actor_id, **kwargs)
            self.db.add(exam)
            await self.db.flush()

        logger.info("Order exam %s: %s -> %s by actor %s.", order_exam_id, previous, exam.status, actor_id)
        return await self.get_order_exam(order_exam_id)

    async def collect_sample(self, order_exam_id: int, actor_id: int, sample_barcode: str = None) -> lab_models.OrderExam:
        """pending → sample_collected. 채취 시각/채취자와 선택적 바코드를 기록합니다."""
        return await self._transition(order_exam_id, ExamEvent.COLLECT_SAMPLE, actor_id, barcode=sample_barcode)

    async def begin_analysis(self, order_exam_id: int, actor_id: int) -> lab_models.OrderExam:
        """sample_collected → in_analysis. 채취 시각이 기록된 검사만 가능합니다."""
        return await self._transition(order_exam_id, ExamEvent.BEGIN_ANALYSIS, actor_id)

    async def reject_exam(self, order_exam_id: int, actor_id: int, reason: str) -> lab_models.OrderExam:
        """pending/sample_collected → rejected. 사유는 필수입니다."""
        return await self._transition(order_exam_id, ExamEvent.REJECT, actor_id, reason=reason)

    async def submit_results(
        self, order_exam_id: int, actor_id: int, results: List[lab_schemas.ExamResultInput]
    ) -> lab_models.OrderExam:
        """
        검사 결과를 한 번에 입력하고 검사를 completed로 전이합니다.

        Args:
            order_exam_id (int): 결과를 입력할 검사 ID.
            actor_id (int): 결과 입력자 ID.
            results (List[ExamResultInput]): 항목별 입력 값.

        Returns:
            OrderExam: 결과가 적재된 검사.

        Raises:
            NotFoundError: 검사가 없을 때.
            StateTransitionError: 검사가 completed로 전이할 수 없는 상태일 때.
            ValidationError: 결과가 비었거나, 항목이 중복되거나, 검사 종류에 속하지 않거나,
                값이 항목의 데이터 형식과 맞지 않을 때.
        """
        async with atomic(self.db, "result submission"):
            exam = await self.get_order_exam(order_exam_id)
            ensure_transition(exam, ExamEvent.COMPLETE)

            if not results:
                raise ValidationError("At least one result is required.", code="EMPTY_RESULT_LIST")

            parameter_ids = [item.exam_parameter_id for item in results]
            duplicates = sorted({pid for pid in parameter_ids if parameter_ids.count(pid) > 1})
            if duplicates:
                raise ValidationError(
                    "A parameter may appear only once per submission.",
                    code="DUPLICATE_PARAMETER",
                    detail={"exam_parameter_ids": duplicates},
                )

            parameters = {parameter.id: parameter for parameter in exam.exam_type.parameters}
            entered_at = datetime.now(UTC)
            abnormal_count = 0

            for item in results:
                parameter = parameters.get(item.exam_parameter_id)
                if parameter is None:
                    raise ValidationError(
                        "Parameter does not belong to this exam type.",
                        code="PARAMETER_NOT_IN_EXAM",
                        detail={"exam_parameter_id": item.exam_parameter_id, "exam_type_id": exam.exam_type_id},
                    )

                db_result = await lab_crud.exam_result.create(
                    self.db,
                    obj_in={
                        "order_exam_id": exam.id,
                        "exam_parameter_id": parameter.id,
                        **resolve_result_values(item, parameter),
                        "technician_notes": item.technician_notes,
                        "version": 1,
                        "is_current": True,
                        "entered_by": actor_id,
                        "entered_at": entered_at,
                    },
                    parameter=parameter,
                )
                if db_result.is_abnormal:
                    abnormal_count += 1

            apply_transition(exam, ExamEvent.COMPLETE, actor_id=actor_id, at=entered_at)
            self.db.add(exam)
            await self.db.flush()

        logger.info(
            "Order exam %s completed with %d result(s), %d abnormal, by actor %s.",
            order_exam_id, len(results), abnormal_count, actor_id,
        )
        return await self.get_order_exam(order_exam_id)

    async def validate_results(self, order_exam_id: int, actor_id: int) -> lab_models.OrderExam:
        """
        completed → validated. 검사와 현재 결과 모두에 확인자/확인 시각을 기록합니다.
        필수 항목 누락 여부나 주문 상태 집계는 하지 않습니다.
        """
        async with atomic(self.db, "result validation"):
            exam = await self.get_order_exam(order_exam_id)
            validated_at = datetime.now(UTC)
            apply_transition(exam, ExamEvent.VALIDATE, actor_id=actor_id, at=validated_at)
            self.db.add(exam)

            for db_result in await lab_crud.exam_result.get_current_for_exam(self.db, order_exam_id=order_exam_id):
                db_result.validated_by = actor_id
                db_result.validated_at = validated_at
                self.db.add(db_result)
            await self.db.flush()

        logger.info("Order exam %s validated by actor %s.", order_exam_id, actor_id)
        return await self.get_order_exam(order_exam_id)

    async def correct_result(
        self, result_id: int, actor_id: int, correction: lab_schemas.ResultCorrect
    ) -> lab_models.ExamResult:
        """
        확인 전(completed) 검사의 현재 결과를 정정합니다.

        기존 행은 기록 당시의 판정을 유지한 채 is_current=False 로 남기고,
        version+1 인 새 행을 현재 항목 정의로 다시 판정해 만듭니다.

        Raises:
            NotFoundError: 결과가 없을 때.
            StateTransitionError: 이미 대체된 결과이거나 검사가 completed가 아닐 때.
            ValidationError: 값이 항목의 데이터 형식과 맞지 않을 때.
        """
        async with atomic(self.db, "result correction"):
            previous = await lab_crud.exam_result.get_with_parameter(self.db, id=result_id)
            if previous is None:
                raise NotFoundError("Exam result not found.", code="RESULT_NOT_FOUND", detail={"result_id": result_id})
            if not previous.is_current:
                raise StateTransitionError(
                    "Only the current version of a result can be corrected.",
                    code="RESULT_SUPERSEDED",
                    detail={"result_id": result_id},
                )

            exam = await lab_crud.order_exam.get(self.db, previous.order_exam_id)
            if exam.status != lab_models.ExamStatus.COMPLETED.value:
                raise StateTransitionError(
                    f"Cannot correct results of an exam in status '{exam.status}'.",
                    detail={"order_exam_id": exam.id, "status": exam.status},
                )

            parameter = previous.parameter
            values = resolve_result_values(correction, parameter)

            await lab_crud.exam_result.supersede(self.db, db_obj=previous)

            db_result = await lab_crud.exam_result.create(
                self.db,
                obj_in={
                    "order_exam_id": previous.order_exam_id,
                    "exam_parameter_id": previous.exam_parameter_id,
                    **values,
                    "technician_notes": correction.technician_notes or previous.technician_notes,
                    "version": previous.version + 1,
                    "is_current": True,
                    "entered_by": actor_id,
                    "entered_at": datetime.now(UTC),
                },
                parameter=parameter,
            )
            new_id = db_result.id

        logger.info("Exam result %s superseded by %s (actor %s).", result_id, new_id, actor_id)
        return await lab_crud.exam_result.get(self.db, new_id)


def get_exam_workflow_service(db: AsyncSession = Depends(deps.get_db_session)) -> ExamWorkflowService:
    """FastAPI 의존성: 요청 세션에 묶인 ExamWorkflowService를 반환합니다."""
    return ExamWorkflowService(db)
