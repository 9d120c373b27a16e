# flake8: noqa
# scripts/create_admin.py

import asyncio
from typing import Optional

import typer
from fastapi import HTTPException
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.database import AsyncSessionLocal, create_db_and_tables, engine
from app.domains.usr import crud as usr_crud
from app.domains.usr import schemas as usr_schemas
from app.domains.usr.models import UserRole

cli = typer.Typer()


async def create_admin_user(db: AsyncSession, user_in: usr_schemas.UserCreate) -> bool:
    """
    데이터베이스에 관리자 사용자를 생성하는 비동기 함수.
    로그인 ID 또는 이메일이 이미 있으면 생성하지 않고 False를 반환합니다.
    """
    try:
        await usr_crud.user.create(db, obj_in=user_in)
    except HTTPException as e:
        typer.echo(f"오류: {e.detail}", err=True)
        return False
    typer.echo(f"관리자 계정이 성공적으로 생성되었습니다: {user_in.login_id} ({user_in.email})")
    return True


@cli.command()
def main(
    login_id: str = typer.Option(
        ..., '--login-id', '-u',
        prompt="관리자 로그인 ID를 입력하세요",
        help="로그인 시 사용할 ID입니다."
    ),
    password: str = typer.Option(
        ..., '--password', '-p',
        prompt="관리자 비밀번호를 입력하세요",
        hide_input=True,
        confirmation_prompt=True,
        help="생성할 관리자 계정의 비밀번호입니다. (최소 8자 이상)"
    ),
    email: Optional[str] = typer.Option(None, '--email', '-e', help="관리자 이메일 주소입니다."),
    name: str = typer.Option("Admin", '--name', '-n', help="관리자의 이름입니다."),
    init_db: bool = typer.Option(False, '--init-db', help="계정을 만들기 전에 테이블을 생성합니다 (개발용)."),
):
    """
    Seminar Hub를 위한 새로운 관리자(ADMIN) 계정을 생성합니다.
    """
    if len(password) < 8:
        typer.echo("오류: 비밀번호는 최소 8자 이상이어야 합니다.", err=True)
        raise typer.Abort()

    user_data = usr_schemas.UserCreate(
        login_id=login_id,
        email=email,
        password=password,
        name=name,
        role=UserRole.ADMIN,
    )

    async def run_creation() -> bool:
        if init_db:
            await create_db_and_tables()
        try:
            async with AsyncSessionLocal() as db:
                return await create_admin_user(db=db, user_in=user_data)
        finally:
            await engine.dispose()

    if not asyncio.run(run_creation()):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    cli()
