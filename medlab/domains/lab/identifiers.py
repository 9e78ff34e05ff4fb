# medlab/domains/lab/identifiers.py

"""
날짜 범위 식별 번호 생성기 모듈입니다.

형식: "<PREFIX>-<YYYYMMDD>-<NNNNNN>" (일련번호는 6자리 0 채움)
주문(ORD), 수납(PAY), 청구서(INV) 번호가 같은 형식을 사용합니다.

두 가지 전략을 제공합니다.
- SequenceIdentifierGenerator: (접두어, 날짜)별 카운터 행을 UPDATE ... RETURNING 으로
  원자적으로 증가시킵니다. 동시에 실행되는 트랜잭션끼리도 같은 번호를 받지 않습니다. (기본값)
- CountingIdentifierGenerator: 같은 접두어+날짜로 이미 발급된 행의 개수 + 1.
  개수를 읽은 뒤 어느 쪽도 커밋하기 전이라면 두 트랜잭션이 같은 번호를 받을 수 있습니다.

두 전략 모두 번호를 저장할 엔티티와 같은 트랜잭션 안에서 호출해야 합니다.
"""

import logging
from datetime import date
from enum import Enum
from typing import Any, Optional, Union

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from medlab.core.config import settings

from . import models as lab_models

logger = logging.getLogger(__name__)


class IdentifierPrefix(str, Enum):
    ORDER = "ORD"
    PAYMENT = "PAY"
    INVOICE = "INV"


def format_identifier(prefix: Union[str, IdentifierPrefix], scope_date: date, sequence: int) -> str:
    prefix_value = prefix.value if isinstance(prefix, IdentifierPrefix) else prefix
    return f"{prefix_value}-{scope_date:%Y%m%d}-{sequence:06d}"


class SequenceIdentifierGenerator:
    """(접두어, 날짜)별 카운터 행을 원자적으로 증가시켜 번호를 발급합니다."""

    async def _increment(self, db: AsyncSession, prefix: str, scope_date: date) -> Any:
        statement = (
            update(lab_models.IdSequence)
            .where(
                lab_models.IdSequence.prefix == prefix,
                lab_models.IdSequence.scope_date == scope_date,
            )
            .values(last_value=lab_models.IdSequence.last_value + 1)
            .returning(lab_models.IdSequence.last_value)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def next(self, db: AsyncSession, prefix: Union[str, IdentifierPrefix], scope_date: date) -> str:
        prefix_value = prefix.value if isinstance(prefix, IdentifierPrefix) else prefix

        sequence = await self._increment(db, prefix_value, scope_date)
        if sequence is None:
            # 그날의 첫 번호: 카운터 행을 SAVEPOINT 안에서 만듭니다.
            # 다른 트랜잭션이 먼저 만들었다면 유일성 위반이 나므로 SAVEPOINT만 되돌리고 다시 증가시킵니다.
            try:
                async with db.begin_nested():
                    db.add(lab_models.IdSequence(prefix=prefix_value, scope_date=scope_date, last_value=1))
                sequence = 1
            except IntegrityError:
                logger.info("Sequence row for %s/%s created concurrently; incrementing instead.", prefix_value, scope_date)
                sequence = await self._increment(db, prefix_value, scope_date)

        return format_identifier(prefix_value, scope_date, sequence)


class CountingIdentifierGenerator:
    """
    이미 발급된 번호의 개수 + 1 로 다음 번호를 만듭니다.

    직렬화된 호출에서는 고유하지만, 동시에 실행되는 트랜잭션이 같은 개수를 읽으면
    중복 번호가 만들어집니다. 이 경우 유일 제약이 두 번째 INSERT를 거부합니다.
    """

    def __init__(self, model: Any, column_name: str):
        self.model = model
        self.column_name = column_name

    async def next(self, db: AsyncSession, prefix: Union[str, IdentifierPrefix], scope_date: date) -> str:
        prefix_value = prefix.value if isinstance(prefix, IdentifierPrefix) else prefix
        column = getattr(self.model, self.column_name)
        pattern = f"{prefix_value}-{scope_date:%Y%m%d}-%"

        statement = select(func.count()).select_from(self.model).where(column.like(pattern))
        result = await db.execute(statement)
        count = result.scalar_one()
        return format_identifier(prefix_value, scope_date, count + 1)


sequence_generator = SequenceIdentifierGenerator()
order_counting_generator = CountingIdentifierGenerator(lab_models.Order, "order_number")


def get_order_number_generator(strategy: Optional[str] = None):
    """설정(IDENTIFIER_STRATEGY)에 맞는 주문 번호 생성기를 반환합니다."""
    strategy = strategy or settings.IDENTIFIER_STRATEGY
    if strategy == "count":
        return order_counting_generator
    return sequence_generator
