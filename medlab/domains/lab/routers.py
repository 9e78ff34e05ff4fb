# medlab/domains/lab/routers.py

"""
'lab' 도메인 (검사 주문 워크플로) 관련 API 엔드포인트를 정의하는 모듈입니다.

라우터는 요청을 서비스 계층에 전달하기만 합니다.
도메인 예외(ValidationError, NotFoundError, StateTransitionError, PersistenceError)는
main.py에 등록된 핸들러가 HTTP 응답으로 변환합니다.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from medlab.core import dependencies as deps
from medlab.services.order_service import OrderService, get_order_service
from medlab.services.exam_service import ExamWorkflowService, get_exam_workflow_service

from . import schemas as lab_schemas

router = APIRouter(
    tags=["Laboratory Workflow (검사 워크플로)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 주문 (Order) 라우터
# =============================================================================
@router.post("/orders", response_model=lab_schemas.OrderResponse, status_code=status.HTTP_201_CREATED, summary="검사 주문 생성")
async def create_order(
    order_in: lab_schemas.OrderCreate,
    service: OrderService = Depends(get_order_service),
    actor_id: int = Depends(deps.get_current_actor_id),
):
    """주문 번호를 발급하고 요청된 모든 검사를 pending 상태로 생성합니다."""
    return await service.create_order(order_in, actor_id=actor_id)


@router.get("/orders", response_model=List[lab_schemas.OrderResponse], summary="주문 목록 조회 (필터)")
async def read_orders(
    order_filter: lab_schemas.OrderFilter = Depends(),
    service: OrderService = Depends(get_order_service),
):
    """
    상태, 우선순위, 환자 ID, 주문일 기간(start_date ~ end_date)으로 필터링합니다.
    최신 주문이 먼저 나옵니다.
    """
    return await service.list_orders(order_filter)


@router.get("/orders/{order_id}", response_model=lab_schemas.OrderResponse, summary="특정 주문 조회")
async def read_order(order_id: int, service: OrderService = Depends(get_order_service)):
    return await service.get_order(order_id)


@router.post("/orders/{order_id}/cancel", response_model=lab_schemas.OrderResponse, summary="주문 취소")
async def cancel_order(
    order_id: int,
    cancel_in: lab_schemas.OrderCancel,
    service: OrderService = Depends(get_order_service),
    actor_id: int = Depends(deps.get_current_actor_id),
):
    return await service.cancel_order(order_id, actor_id=actor_id, reason=cancel_in.reason)


# =============================================================================
# 2. 검사 (OrderExam) 워크플로 라우터
# =============================================================================
@router.get("/lab/exams/{order_exam_id}", response_model=lab_schemas.OrderExamDetailResponse, summary="검사 상세 (항목, 현재 결과 포함)")
async def read_order_exam(order_exam_id: int, service: ExamWorkflowService = Depends(get_exam_workflow_service)):
    return await service.get_order_exam(order_exam_id)


@router.post("/lab/exams/{order_exam_id}/collect", response_model=lab_schemas.OrderExamResponse, summary="검체 채취")
async def collect_sample(
    order_exam_id: int,
    collect_in: Optional[lab_schemas.SampleCollect] = None,
    service: ExamWorkflowService = Depends(get_exam_workflow_service),
    actor_id: int = Depends(deps.get_current_actor_id),
):
    barcode = collect_in.sample_barcode if collect_in else None
    return await service.collect_sample(order_exam_id, actor_id=actor_id, sample_barcode=barcode)


@router.post("/lab/exams/{order_exam_id}/begin-analysis", response_model=lab_schemas.OrderExamResponse, summary="분석 시작")
async def begin_analysis(
    order_exam_id: int,
    service: ExamWorkflowService = Depends(get_exam_workflow_service),
    actor_id: int = Depends(deps.get_current_actor_id),
):
    return await service.begin_analysis(order_exam_id, actor_id=actor_id)


@router.post("/lab/exams/{order_exam_id}/reject", response_model=lab_schemas.OrderExamResponse, summary="검사 반려")
async def reject_exam(
    order_exam_id: int,
    reject_in: lab_schemas.ExamReject,
    service: ExamWorkflowService = Depends(get_exam_workflow_service),
    actor_id: int = Depends(deps.get_current_actor_id),
):
    return await service.reject_exam(order_exam_id, actor_id=actor_id, reason=reject_in.reason)


@router.post("/lab/exams/{order_exam_id}/results", response_model=lab_schemas.OrderExamDetailResponse, summary="검사 결과 입력")
async def submit_results(
    order_exam_id: int,
    results_in: lab_schemas.ResultsSubmit,
    service: ExamWorkflowService = Depends(get_exam_workflow_service),
    actor_id: int = Depends(deps.get_current_actor_id),
):
    """
    결과를 한 번에 입력합니다. 이상 여부는 서버에서 판정하며 요청에 포함할 수 없습니다.
    하나라도 실패하면 전체 입력이 취소됩니다.
    """
    return await service.submit_results(order_exam_id, actor_id=actor_id, results=results_in.results)


@router.post("/lab/exams/{order_exam_id}/validate", response_model=lab_schemas.OrderExamDetailResponse, summary="검사 결과 확인")
async def validate_results(
    order_exam_id: int,
    service: ExamWorkflowService = Depends(get_exam_workflow_service),
    actor_id: int = Depends(deps.get_current_actor_id),
):
    return await service.validate_results(order_exam_id, actor_id=actor_id)


@router.post("/lab/results/{result_id}/correct", response_model=lab_schemas.ExamResultResponse, summary="검사 결과 정정")
async def correct_result(
    result_id: int,
    correction_in: lab_schemas.ResultCorrect,
    service: ExamWorkflowService = Depends(get_exam_workflow_service),
    actor_id: int = Depends(deps.get_current_actor_id),
):
    return await service.correct_result(result_id, actor_id=actor_id, correction=correction_in)
