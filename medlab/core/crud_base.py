# medlab/core/crud_base.py

"""
공통 CRUD 작업을 위한 기본 클래스 모듈입니다.

워크플로 서비스는 여러 행을 하나의 트랜잭션으로 묶어야 하므로,
create/update는 `commit=False`일 때 flush만 수행하고 커밋은 호출자에게 맡깁니다.
"""

import logging
from typing import Generic, List, Optional, Type, TypeVar, Any, Dict, Sequence, Union
from datetime import date, datetime, time, timedelta

from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from pydantic import BaseModel

ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)

logger = logging.getLogger(__name__)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    모든 CRUD 작업에 대한 기본 클래스를 정의합니다.
    물리 삭제는 제공하지 않습니다 (검사 기록은 상태로만 종료됩니다).
    """
    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get(self, db: AsyncSession, id: Any) -> Optional[ModelType]:
        """ID를 기준으로 단일 레코드를 조회합니다."""
        return await db.get(self.model, id)

    async def get_multi(
        self, db: AsyncSession, *, skip: int = 0, limit: int = 100, **kwargs: Any
    ) -> List[ModelType]:
        """
        여러 레코드를 조회합니다. 필터링을 위한 키워드 인자를 지원합니다.
        """
        query = select(self.model)

        for field, value in kwargs.items():
            if hasattr(self.model, field):
                query = query.where(getattr(self.model, field) == value)

        query = query.order_by(self.model.id).offset(skip).limit(limit)
        result = await db.execute(query)
        return result.scalars().all()

    def build_filter_conditions(
        self,
        *,
        filters: Optional[Dict[str, Any]] = None,  # 다중 속성 필터: {"attribute_name": "value"}
        date_range_field: Optional[str] = None,    # 기간 검색을 적용할 날짜 필드 이름 (예: "order_date")
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[ColumnElement]:
        """
        다중 속성(정확히 일치) 및 기간 조건 목록을 만듭니다.
        값이 None인 필터는 '조건 없음'으로 취급합니다.
        """
        conditions = []

        # 1. 다중 속성 필터링
        for attribute, value in (filters or {}).items():
            if value is None:
                continue
            if not hasattr(self.model, attribute):
                logger.warning("Model %s has no attribute '%s'", self.model.__name__, attribute)
                continue
            conditions.append(getattr(self.model, attribute) == value)

        # 2. 기간 검색 필터링 (시작일 00:00:00 ~ 종료일 당일 끝까지 포함)
        if date_range_field:
            if not hasattr(self.model, date_range_field):
                logger.warning("Model %s has no attribute '%s' for date range filtering.", self.model.__name__, date_range_field)
            else:
                date_field = getattr(self.model, date_range_field)
                if start_date is not None:
                    conditions.append(date_field >= datetime.combine(start_date, time.min))
                if end_date is not None:
                    conditions.append(date_field < datetime.combine(end_date + timedelta(days=1), time.min))

        return conditions

    async def get_filtered(
        self,
        db: AsyncSession,
        *,
        filters: Optional[Dict[str, Any]] = None,
        date_range_field: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        order_by: Sequence[str] = ("id",),
        order_desc: bool = True,
        options: Sequence[Any] = (),
        skip: int = 0,
        limit: int = 100
    ) -> List[ModelType]:
        """
        다중 속성 및 기간 검색 기능을 포함한 다중 조회.
        """
        query = select(self.model)
        conditions = self.build_filter_conditions(
            filters=filters,
            date_range_field=date_range_field,
            start_date=start_date,
            end_date=end_date,
        )
        if conditions:
            query = query.where(*conditions)

        # 정렬: 앞의 필드가 우선, 동률은 뒤의 필드로 결정
        for field in order_by:
            column = getattr(self.model, field)
            query = query.order_by(column.desc() if order_desc else column)

        if options:
            query = query.options(*options)

        query = query.offset(skip).limit(limit)
        result = await db.execute(query)
        return result.scalars().all()

    async def create(
        self, db: AsyncSession, *, obj_in: Union[CreateSchemaType, Dict[str, Any]], commit: bool = True
    ) -> ModelType:
        """
        새로운 레코드를 생성합니다.
        commit=False이면 호출자의 트랜잭션 안에서 flush만 수행합니다.
        """
        db_obj = self.model.model_validate(obj_in)
        db.add(db_obj)
        if commit:
            await db.commit()
            await db.refresh(db_obj)
        else:
            await db.flush()
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]],
        commit: bool = True
    ) -> ModelType:
        """
        기존 레코드를 업데이트합니다.
        """
        update_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(db_obj, key, value)

        db.add(db_obj)
        if commit:
            await db.commit()
            await db.refresh(db_obj)
        else:
            await db.flush()
        return db_obj
