# scripts/seed_catalog.py

import asyncio
import typer

from medlab.core.database import AsyncSessionLocal, create_db_and_tables, engine
from medlab.domains.cat.seed import seed_catalog

cli = typer.Typer()


async def run_seed(create_tables: bool) -> dict:
    """
    (선택적으로 테이블을 만든 뒤) 기본 카탈로그를 생성합니다.
    """
    if create_tables:
        await create_db_and_tables()
    try:
        async with AsyncSessionLocal() as db:
            return await seed_catalog(db)
    finally:
        await engine.dispose()


@cli.command()
def main(
    create_tables: bool = typer.Option(
        False, '--create-tables', '-c',
        help="시드 전에 누락된 테이블을 생성합니다. (개발용)"
    ),
):
    """
    MedLab 개발 환경을 위한 기본 검사 카탈로그(분류, 검체 종류, 검사 종류, 항목)를 생성합니다.
    """
    print("카탈로그 시드를 시작합니다...")
    created = asyncio.run(run_seed(create_tables))
    print(
        f"완료: 분류 {created['categories']}건, 검체 종류 {created['sample_types']}건, "
        f"검사 종류 {created['exam_types']}건 생성"
    )


if __name__ == "__main__":
    cli()
