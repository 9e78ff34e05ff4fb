# tests/domains/test_identifiers.py

"""
날짜 범위 식별 번호 생성기에 대한 테스트 모듈입니다.

- 형식(PREFIX-YYYYMMDD-NNNNNN)과 직렬 호출 시 고유성을 검증합니다.
- 개수 기반 전략이 동시 트랜잭션에서 같은 번호를 내는 문제를 재현합니다.
"""

import re
from datetime import date

import pytest
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from medlab.domains.lab import models as lab_models
from medlab.domains.lab.identifiers import (
    CountingIdentifierGenerator,
    IdentifierPrefix,
    SequenceIdentifierGenerator,
    format_identifier,
    get_order_number_generator,
    order_counting_generator,
    sequence_generator,
)

from tests.conftest import TestingSessionLocal

IDENTIFIER_PATTERN = re.compile(r"^[A-Z]{3}-\d{8}-\d{6}$")


def test_format_identifier_pads_sequence():
    print("\n--- Running test_format_identifier_pads_sequence ---")
    assert format_identifier("ORD", date(2030, 1, 5), 42) == "ORD-20300105-000042"
    assert format_identifier(IdentifierPrefix.INVOICE, date(2030, 12, 31), 1) == "INV-20301231-000001"


def test_strategy_selection():
    print("\n--- Running test_strategy_selection ---")
    assert get_order_number_generator("count") is order_counting_generator
    assert get_order_number_generator("sequence") is sequence_generator


@pytest.mark.asyncio
async def test_sequence_generator_is_unique_when_serialized(db_session: AsyncSession):
    """[성공] 같은 접두어+날짜로 연속 호출하면 1, 2, 3 ... 이 발급됩니다."""
    print("\n--- Running test_sequence_generator_is_unique_when_serialized ---")
    generator = SequenceIdentifierGenerator()
    day = date(2030, 3, 1)

    issued = [await generator.next(db_session, IdentifierPrefix.ORDER, day) for _ in range(3)]

    assert issued == ["ORD-20300301-000001", "ORD-20300301-000002", "ORD-20300301-000003"]
    assert all(IDENTIFIER_PATTERN.match(identifier) for identifier in issued)


@pytest.mark.asyncio
async def test_sequence_generator_scopes_by_prefix_and_date(db_session: AsyncSession):
    """[성공] 날짜나 접두어가 다르면 일련번호가 1부터 다시 시작합니다."""
    print("\n--- Running test_sequence_generator_scopes_by_prefix_and_date ---")
    generator = SequenceIdentifierGenerator()

    assert await generator.next(db_session, "ORD", date(2030, 3, 2)) == "ORD-20300302-000001"
    assert await generator.next(db_session, "ORD", date(2030, 3, 2)) == "ORD-20300302-000002"
    assert await generator.next(db_session, "ORD", date(2030, 3, 3)) == "ORD-20300303-000001"
    assert await generator.next(db_session, IdentifierPrefix.PAYMENT, date(2030, 3, 2)) == "PAY-20300302-000001"


@pytest.mark.asyncio
async def test_sequence_generator_recovers_from_concurrent_row_creation(db_session: AsyncSession, monkeypatch):
    """
    [성공] 첫 증가가 행을 찾지 못했지만 다른 트랜잭션이 먼저 카운터 행을 만든 경우,
    SAVEPOINT만 되돌리고 다시 증가시켜 다음 번호를 받습니다.
    """
    print("\n--- Running test_sequence_generator_recovers_from_concurrent_row_creation ---")
    day = date(2030, 4, 1)
    db_session.add(lab_models.IdSequence(prefix="INV", scope_date=day, last_value=4))
    await db_session.flush()

    generator = SequenceIdentifierGenerator()
    real_increment = generator._increment
    calls = []

    async def increment_missing_first(db, prefix, scope_date):
        calls.append(prefix)
        if len(calls) == 1:
            return None
        return await real_increment(db, prefix, scope_date)

    monkeypatch.setattr(generator, "_increment", increment_missing_first)

    assert await generator.next(db_session, "INV", day) == "INV-20300401-000005"
    assert len(calls) == 2

    result = await db_session.execute(
        select(lab_models.IdSequence).where(lab_models.IdSequence.prefix == "INV", lab_models.IdSequence.scope_date == day)
    )
    assert len(result.scalars().all()) == 1


@pytest.mark.asyncio
async def test_counting_generator_counts_existing_identifiers(db_session: AsyncSession, test_patient):
    """[성공] 개수 기반 전략은 이미 저장된 같은 날짜 번호의 개수 + 1 을 반환합니다."""
    print("\n--- Running test_counting_generator_counts_existing_identifiers ---")
    day = date(2030, 5, 1)
    generator = CountingIdentifierGenerator(lab_models.Order, "order_number")

    for _ in range(2):
        identifier = await generator.next(db_session, "ORD", day)
        db_session.add(lab_models.Order(order_number=identifier, patient_id=test_patient.id, created_by=1))
        await db_session.flush()

    assert await generator.next(db_session, "ORD", day) == "ORD-20300501-000003"
    assert await generator.next(db_session, "ORD", date(2030, 5, 2)) == "ORD-20300502-000001"


@pytest.mark.asyncio
async def test_counting_generator_collides_under_concurrent_transactions():
    """
    [실패/동시성] 두 트랜잭션이 서로의 INSERT 전에 개수를 읽으면 같은 번호를 받습니다.
    기본 전략(sequence)은 카운터 행을 사용하므로 이 문제가 없습니다.
    """
    print("\n--- Running test_counting_generator_collides_under_concurrent_transactions ---")
    day = date(2031, 1, 1)

    async with TestingSessionLocal() as first, TestingSessionLocal() as second:
        try:
            first_id = await order_counting_generator.next(first, "ORD", day)
            second_id = await order_counting_generator.next(second, "ORD", day)
        finally:
            await first.rollback()
            await second.rollback()

    assert first_id == second_id == "ORD-20310101-000001"
