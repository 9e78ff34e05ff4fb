# tests/conftest.py

import os
import tempfile
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Awaitable, Callable, Sequence

# --- 테스트용 데이터베이스 설정 ---
# medlab 패키지가 임포트되기 전에 설정해야 Settings()가 테스트 DB URL을 읽습니다.
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), f"test_medlab_{os.getpid()}.db")
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["APP_ENV"] = "testing"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402

from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from medlab.main import app as main_app  # noqa: E402
from medlab.core import dependencies as deps  # noqa: E402
from medlab.core.database import build_engine, get_session  # noqa: E402
from medlab.core.security import create_access_token  # noqa: E402

# --- 모든 모델 임포트 ---
from medlab.domains.models import *  # noqa: F401, F403, E402
from medlab.domains.pat import models as pat_models  # noqa: E402
from medlab.domains.cat import models as cat_models  # noqa: E402
from medlab.domains.lab import models as lab_models  # noqa: E402
from medlab.domains.lab import schemas as lab_schemas  # noqa: E402
from medlab.services.order_service import OrderService  # noqa: E402

TEST_ACTOR_ID = 7

test_engine = build_engine(TEST_DATABASE_URL, poolclass=NullPool)

# 테스트용 세션 팩토리 생성 (AsyncSession)
TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# --- 데이터베이스 픽스처 ---
@pytest_asyncio.fixture(scope="session", loop_scope="session", autouse=True)
async def setup_database():
    """
    테스트 세션 시작 시 모든 테이블을 삭제하고 재생성합니다.
    테스트 종료 시 다시 테이블을 삭제하고 DB 파일을 지웁니다.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)

    yield  # 테스트 실행

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await test_engine.dispose()
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    각 테스트 함수마다 바깥 트랜잭션을 시작하고, 테스트 완료 후 롤백합니다.
    서비스의 commit/rollback은 SAVEPOINT 단위로 동작하므로 테스트 간 격리가 유지됩니다.
    """
    connection = await test_engine.connect()
    transaction = await connection.begin()
    session = TestingSessionLocal(bind=connection, join_transaction_mode="create_savepoint")

    try:
        yield session
    finally:
        await session.close()
        await transaction.rollback()
        await connection.close()


# --- 카탈로그 픽스처 ---
@pytest_asyncio.fixture(name="test_category")
async def test_category_fixture(db_session: AsyncSession) -> cat_models.ExamCategory:
    category = cat_models.ExamCategory(code="HEM", name="Hematology", display_order=1)
    db_session.add(category)
    await db_session.commit()
    await db_session.refresh(category)
    return category


@pytest_asyncio.fixture(name="test_sample_type")
async def test_sample_type_fixture(db_session: AsyncSession) -> cat_models.SampleType:
    sample_type = cat_models.SampleType(code="BLD", name="Venous Blood", container_type="EDTA tube")
    db_session.add(sample_type)
    await db_session.commit()
    await db_session.refresh(sample_type)
    return sample_type


@pytest_asyncio.fixture(name="exam_type_factory")
def exam_type_factory_fixture(
    db_session: AsyncSession,
    test_category: cat_models.ExamCategory,
    test_sample_type: cat_models.SampleType,
) -> Callable[..., Awaitable[cat_models.ExamType]]:
    """
    항목 정의(parameters: dict 목록)를 포함한 검사 종류를 생성하는 팩토리 함수를 반환합니다.
    """
    async def _create_exam_type(code: str, name: str, parameters: Sequence[dict], **kwargs) -> cat_models.ExamType:
        exam_type = cat_models.ExamType(
            code=code,
            name=name,
            category_id=test_category.id,
            sample_type_id=test_sample_type.id,
            base_price=kwargs.pop("base_price", Decimal("35.00")),
            **kwargs,
        )
        db_session.add(exam_type)
        await db_session.flush()
        for order, parameter in enumerate(parameters, start=1):
            db_session.add(cat_models.ExamParameter(exam_type_id=exam_type.id, display_order=order, **parameter))
        await db_session.commit()
        await db_session.refresh(exam_type)
        return exam_type
    return _create_exam_type


@pytest_asyncio.fixture(name="test_hb_exam")
async def test_hb_exam_fixture(exam_type_factory: Callable) -> cat_models.ExamType:
    """헤모글로빈 검사 (참고 범위 12 ~ 16 g/dL)."""
    return await exam_type_factory(
        "HB", "Hemoglobin",
        [{"parameter_code": "HGB", "name": "Hemoglobin", "data_type": "numeric", "unit_of_measure": "g/dL",
          "reference_min": Decimal("12"), "reference_max": Decimal("16")}],
    )


@pytest_asyncio.fixture(name="test_panel_exam")
async def test_panel_exam_fixture(exam_type_factory: Callable) -> cat_models.ExamType:
    """모든 데이터 형식의 항목을 가진 검사 (칼륨은 위급 항목)."""
    return await exam_type_factory(
        "PANEL", "Mixed Panel",
        [
            {"parameter_code": "K", "name": "Potassium", "data_type": "numeric", "unit_of_measure": "mmol/L",
             "reference_min": Decimal("3.5"), "reference_max": Decimal("5.1"), "is_critical": True},
            {"parameter_code": "COL", "name": "Color", "data_type": "select",
             "select_options": ["Yellow", "Amber", "Red"], "reference_value_text": "Yellow"},
            {"parameter_code": "HIV", "name": "HIV 1/2", "data_type": "boolean", "reference_value_text": "Negative"},
            {"parameter_code": "OBS", "name": "Observations", "data_type": "text", "is_required": False},
        ],
        base_price=Decimal("80.00"),
    )


@pytest_asyncio.fixture(name="test_inactive_exam")
async def test_inactive_exam_fixture(exam_type_factory: Callable) -> cat_models.ExamType:
    return await exam_type_factory(
        "OLD", "Retired Exam",
        [{"parameter_code": "X", "name": "X", "data_type": "numeric"}],
        is_active=False,
    )


# --- 환자 픽스처 ---
@pytest_asyncio.fixture(name="test_patient")
async def test_patient_fixture(db_session: AsyncSession) -> pat_models.Patient:
    patient = pat_models.Patient(
        document_type="cedula",
        document_number="1712345678",
        first_name="Ana",
        last_name="Torres",
        date_of_birth=date(1990, 5, 17),
        gender="F",
        created_by=TEST_ACTOR_ID,
    )
    db_session.add(patient)
    await db_session.commit()
    await db_session.refresh(patient)
    return patient


@pytest_asyncio.fixture(name="test_inactive_patient")
async def test_inactive_patient_fixture(db_session: AsyncSession) -> pat_models.Patient:
    patient = pat_models.Patient(
        document_type="passport",
        document_number="P0000001",
        first_name="Luis",
        last_name="Mora",
        date_of_birth=date(1975, 1, 2),
        is_active=False,
    )
    db_session.add(patient)
    await db_session.commit()
    await db_session.refresh(patient)
    return patient


# --- 주문 팩토리 ---
@pytest_asyncio.fixture(name="order_factory")
def order_factory_fixture(
    db_session: AsyncSession, test_patient: pat_models.Patient
) -> Callable[..., Awaitable[lab_models.Order]]:
    """
    OrderService로 주문을 생성하는 팩토리 함수를 반환합니다.
    exam_type_ids의 각 검사는 가격 35.00, 할인 5.00으로 요청됩니다.
    """
    patient_id = test_patient.id

    async def _create_order(exam_type_ids: Sequence[int], **kwargs) -> lab_models.Order:
        order_in = lab_schemas.OrderCreate(
            patient_id=kwargs.pop("patient_id", patient_id),
            exams=[
                lab_schemas.OrderExamCreate(exam_type_id=exam_type_id, price=Decimal("35.00"), discount=Decimal("5.00"))
                for exam_type_id in exam_type_ids
            ],
            **kwargs,
        )
        return await OrderService(db_session).create_order(order_in, actor_id=TEST_ACTOR_ID)
    return _create_order


# --- HTTP 클라이언트 픽스처 ---
@pytest_asyncio.fixture(name="client")
async def client_fixture(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    요청 세션을 테스트 세션으로 바꾼 비인증 AsyncClient를 반환합니다.
    """
    async def override_get_session():
        yield db_session

    original_overrides = main_app.dependency_overrides.copy()
    main_app.dependency_overrides.update({
        get_session: override_get_session,
        deps.get_db_session: override_get_session,
    })

    try:
        transport = ASGITransport(app=main_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        main_app.dependency_overrides.clear()
        main_app.dependency_overrides.update(original_overrides)


@pytest_asyncio.fixture(name="actor_client")
async def actor_client_fixture(client: AsyncClient) -> AsyncClient:
    """행위자 ID(TEST_ACTOR_ID)가 담긴 Bearer 토큰을 가진 클라이언트."""
    token = create_access_token({"sub": str(TEST_ACTOR_ID)})
    client.headers["Authorization"] = f"Bearer {token}"
    return client
