# medlab/domains/cat/seed.py

"""
개발/시연 환경용 기본 카탈로그 데이터를 생성하는 모듈입니다.
이미 존재하는 코드는 건너뛰므로 여러 번 실행해도 안전합니다.
"""

import logging
from decimal import Decimal
from typing import Dict

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from . import models as cat_models

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    {"code": "HEM", "name": "Hematology", "description": "Blood and blood component studies", "display_order": 1},
    {"code": "CHEM", "name": "Blood Chemistry", "description": "Biochemical analysis of blood", "display_order": 2},
    {"code": "SER", "name": "Serology", "description": "Antibody and antigen detection", "display_order": 3},
]

DEFAULT_SAMPLE_TYPES = [
    {"code": "BLD", "name": "Venous Blood", "description": "Sample obtained by venipuncture", "container_type": "EDTA tube"},
    {"code": "URN", "name": "Urine", "description": "Urine sample", "container_type": "Sterile cup"},
    {"code": "STL", "name": "Stool", "description": "Stool sample", "container_type": "Stool container"},
]

DEFAULT_EXAM_TYPES = [
    {
        "code": "HB", "name": "Hemoglobin", "category": "HEM", "sample_type": "BLD",
        "base_price": Decimal("35.00"), "processing_time_hours": 4,
        "parameters": [
            {"parameter_code": "HGB", "name": "Hemoglobin", "data_type": "numeric", "unit_of_measure": "g/dL",
             "reference_min": Decimal("12"), "reference_max": Decimal("16"), "is_critical": True, "display_order": 1},
        ],
    },
    {
        "code": "GLU", "name": "Fasting Glucose", "category": "CHEM", "sample_type": "BLD",
        "base_price": Decimal("20.00"), "processing_time_hours": 2, "requires_fasting": True, "fasting_hours": 8,
        "parameters": [
            {"parameter_code": "GLU", "name": "Glucose", "data_type": "numeric", "unit_of_measure": "mg/dL",
             "reference_min": Decimal("70"), "reference_max": Decimal("100"), "display_order": 1},
        ],
    },
    {
        "code": "HIV", "name": "HIV 1/2 Antibodies", "category": "SER", "sample_type": "BLD",
        "base_price": Decimal("60.00"), "processing_time_hours": 24,
        "parameters": [
            {"parameter_code": "HIV", "name": "HIV 1/2", "data_type": "boolean",
             "reference_value_text": "Negative", "display_order": 1},
        ],
    },
    {
        "code": "EGO", "name": "Urinalysis", "category": "CHEM", "sample_type": "URN",
        "base_price": Decimal("25.00"), "processing_time_hours": 6,
        "parameters": [
            {"parameter_code": "COL", "name": "Color", "data_type": "select",
             "select_options": ["Yellow", "Amber", "Red", "Colorless"], "reference_value_text": "Yellow", "display_order": 1},
            {"parameter_code": "PH", "name": "pH", "data_type": "numeric",
             "reference_min": Decimal("4.5"), "reference_max": Decimal("8"), "display_order": 2},
            {"parameter_code": "OBS", "name": "Observations", "data_type": "text", "is_required": False, "display_order": 3},
        ],
    },
]


async def _get_or_create(db: AsyncSession, model, code: str, **values):
    result = await db.execute(select(model).where(model.code == code))
    instance = result.scalars().one_or_none()
    if instance is not None:
        return instance, False
    instance = model(code=code, **values)
    db.add(instance)
    await db.flush()
    return instance, True


async def seed_catalog(db: AsyncSession) -> Dict[str, int]:
    """
    기본 분류, 검체 종류, 검사 종류(항목 포함)를 생성하고 새로 만든 개수를 반환합니다.
    """
    created = {"categories": 0, "sample_types": 0, "exam_types": 0}

    categories = {}
    for data in DEFAULT_CATEGORIES:
        values = {k: v for k, v in data.items() if k != "code"}
        categories[data["code"]], is_new = await _get_or_create(db, cat_models.ExamCategory, data["code"], **values)
        created["categories"] += int(is_new)

    sample_types = {}
    for data in DEFAULT_SAMPLE_TYPES:
        values = {k: v for k, v in data.items() if k != "code"}
        sample_types[data["code"]], is_new = await _get_or_create(db, cat_models.SampleType, data["code"], **values)
        created["sample_types"] += int(is_new)

    for data in DEFAULT_EXAM_TYPES:
        values = {k: v for k, v in data.items() if k not in ("code", "category", "sample_type", "parameters")}
        exam_type, is_new = await _get_or_create(
            db, cat_models.ExamType, data["code"],
            category_id=categories[data["category"]].id,
            sample_type_id=sample_types[data["sample_type"]].id,
            **values,
        )
        if is_new:
            for parameter in data["parameters"]:
                db.add(cat_models.ExamParameter(exam_type_id=exam_type.id, **parameter))
            created["exam_types"] += 1
            logger.info("Seeded exam type %s with %d parameter(s).", exam_type.code, len(data["parameters"]))

    await db.commit()
    return created
