# tests/domains/test_catalog_and_patients.py

"""
'cat'(검사 카탈로그)와 'pat'(환자) 도메인 API 및 카탈로그 시드에 대한 테스트 모듈입니다.
"""

from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from medlab.core.exceptions import ValidationError
from medlab.domains.cat import models as cat_models
from medlab.domains.cat.seed import DEFAULT_EXAM_TYPES, seed_catalog
from medlab.domains.pat import crud as pat_crud
from medlab.domains.pat import models as pat_models
from medlab.domains.pat import schemas as pat_schemas

from tests.conftest import TEST_ACTOR_ID

API = "/api/v1"


# =============================================================================
# 1. 검사 카탈로그
# =============================================================================
@pytest.mark.asyncio
async def test_catalog_lists_active_exam_types_only(client: AsyncClient, test_hb_exam, test_inactive_exam):
    """[성공] 비활성 검사 종류는 카탈로그에 나오지 않습니다."""
    print("\n--- Running test_catalog_lists_active_exam_types_only ---")
    hb_id, inactive_id = test_hb_exam.id, test_inactive_exam.id

    response = await client.get(f"{API}/catalog/exam-types")

    assert response.status_code == 200
    ids = {exam_type["id"] for exam_type in response.json()}
    assert hb_id in ids
    assert inactive_id not in ids


@pytest.mark.asyncio
async def test_catalog_exam_type_detail_includes_parameters(client: AsyncClient, test_panel_exam):
    print("\n--- Running test_catalog_exam_type_detail_includes_parameters ---")
    response = await client.get(f"{API}/catalog/exam-types/{test_panel_exam.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == "PANEL"
    assert body["category"]["code"] == "HEM"
    assert [p["parameter_code"] for p in body["parameters"]] == ["K", "COL", "HIV", "OBS"]
    color = body["parameters"][1]
    assert color["select_options"] == ["Yellow", "Amber", "Red"]


@pytest.mark.asyncio
async def test_catalog_missing_exam_type_returns_404(client: AsyncClient):
    print("\n--- Running test_catalog_missing_exam_type_returns_404 ---")
    response = await client.get(f"{API}/catalog/exam-types/31337")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_seed_catalog_is_idempotent(db_session: AsyncSession):
    """[성공] 시드를 두 번 실행해도 기본 데이터는 한 번만 생성됩니다."""
    print("\n--- Running test_seed_catalog_is_idempotent ---")
    first = await seed_catalog(db_session)
    second = await seed_catalog(db_session)

    assert first == {"categories": 3, "sample_types": 3, "exam_types": len(DEFAULT_EXAM_TYPES)}
    assert second == {"categories": 0, "sample_types": 0, "exam_types": 0}

    result = await db_session.execute(select(func.count()).select_from(cat_models.ExamParameter))
    assert result.scalar_one() == sum(len(data["parameters"]) for data in DEFAULT_EXAM_TYPES)


# =============================================================================
# 2. 환자
# =============================================================================
@pytest.mark.asyncio
async def test_create_and_read_patient(actor_client: AsyncClient):
    print("\n--- Running test_create_and_read_patient ---")
    payload = {
        "document_type": "cedula",
        "document_number": "0912345678",
        "first_name": "Marco",
        "last_name": "Salazar",
        "date_of_birth": "1984-11-02",
        "gender": "M",
    }

    response = await actor_client.post(f"{API}/patients", json=payload)
    assert response.status_code == 201
    created = response.json()
    assert created["full_name"] == "Marco Salazar"
    assert created["created_by"] == TEST_ACTOR_ID
    assert created["is_active"] is True

    response = await actor_client.get(f"{API}/patients/{created['id']}")
    assert response.status_code == 200
    assert response.json()["document_number"] == "0912345678"

    response = await actor_client.post(f"{API}/patients", json=payload)
    assert response.status_code == 400
    assert response.json()["code"] == "DUPLICATE_DOCUMENT"


@pytest.mark.asyncio
async def test_read_missing_patient_returns_404(client: AsyncClient):
    print("\n--- Running test_read_missing_patient_returns_404 ---")
    response = await client.get(f"{API}/patients/55555")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_patient_list_hides_inactive(client: AsyncClient, test_patient, test_inactive_patient):
    print("\n--- Running test_patient_list_hides_inactive ---")
    active_id, inactive_id = test_patient.id, test_inactive_patient.id

    response = await client.get(f"{API}/patients")

    ids = [patient["id"] for patient in response.json()]
    assert active_id in ids
    assert inactive_id not in ids


@pytest.mark.asyncio
async def test_patient_list_filters_by_document_substring(
    client: AsyncClient, db_session: AsyncSession, test_patient, test_inactive_patient
):
    """[성공] ?document= 는 활성 환자의 신분증 번호를 부분 일치로 검색합니다."""
    print("\n--- Running test_patient_list_filters_by_document_substring ---")
    target_id = test_patient.id
    other = pat_models.Patient(
        document_type="cedula", document_number="0987654321",
        first_name="Rosa", last_name="Paredes", date_of_birth=date(2001, 3, 9),
    )
    db_session.add(other)
    await db_session.commit()

    response = await client.get(f"{API}/patients", params={"document": "12345"})
    assert response.status_code == 200
    assert [patient["id"] for patient in response.json()] == [target_id]

    response = await client.get(f"{API}/patients", params={"document": "P0000"})
    assert response.json() == []

    response = await client.get(f"{API}/patients")
    assert len(response.json()) == 2


@pytest.mark.asyncio
async def test_create_patient_duplicate_detected_at_insert(db_session: AsyncSession, test_patient, monkeypatch):
    """
    [실패/유효성] 사전 확인을 통과한 뒤 같은 신분증 번호가 INSERT에서 충돌해도
    DUPLICATE_DOCUMENT ValidationError 로 변환됩니다.
    """
    print("\n--- Running test_create_patient_duplicate_detected_at_insert ---")
    document_number = test_patient.document_number

    async def document_not_found(db, *, document_number):
        return None

    monkeypatch.setattr(pat_crud.patient, "get_by_document", document_not_found)
    patient_in = pat_schemas.PatientCreate(
        document_type="cedula", document_number=document_number,
        first_name="Ana", last_name="Torres", date_of_birth=date(1990, 5, 17),
    )

    with pytest.raises(ValidationError) as exc_info:
        await pat_crud.patient.create(db_session, obj_in=patient_in, actor_id=TEST_ACTOR_ID)

    assert exc_info.value.code == "DUPLICATE_DOCUMENT"
    assert exc_info.value.http_status == 400
    result = await db_session.execute(
        select(func.count()).select_from(pat_models.Patient).where(pat_models.Patient.document_number == document_number)
    )
    assert result.scalar_one() == 1


@pytest.mark.asyncio
async def test_patient_age_on_reference_date(test_patient):
    """생일 전날은 한 살 적게 계산합니다."""
    print("\n--- Running test_patient_age_on_reference_date ---")
    assert test_patient.age(date(2030, 5, 16)) == 39
    assert test_patient.age(date(2030, 5, 17)) == 40
