import asyncio

import typer
from sqlalchemy.ext.asyncio import AsyncSession

import bidbuy.db_models  # noqa: F401

from bidbuy.auth.service import purge_expired
from bidbuy.database import async_session_factory
from bidbuy.errors import BidBuyError
from bidbuy.users.service import promote_to_admin
from bidbuy.users.models import User as UserModel  # 타입 힌트를 위해 임포트

cli = typer.Typer()


async def create_admin_runner(email: str, db: AsyncSession) -> None:
    """비동기 로직을 실행하는 실제 러너 함수"""
    print("--- Admin Promotion ---")
    try:
        admin_user: UserModel = await promote_to_admin(db, email)
        print("\n✅ User promoted to admin!")
        print(f"   ID: {admin_user.id}")
        print(f"   Email: {admin_user.email}")
        print(f"   Role: {admin_user.role.value}")
    except BidBuyError as e:
        print(f"\n❌ {e.detail}")
        raise typer.Exit(code=1)
    finally:
        print("--- Task Finished ---")


@cli.command(name="create-admin")
def createadmin(
    email: str = typer.Option(..., "--email", "-e", help="Email of an existing user (signed in at least once)."),
):
    """
    Promotes an existing user to ADMIN.
    Users are created on their first identity-provider sign-in, so there is no password to set here.
    """
    async def main():
        async with async_session_factory() as session:
            await create_admin_runner(email=email, db=session)

    asyncio.run(main())


@cli.command(name="purge-refresh-tokens")
def purge_refresh_tokens():
    """Deletes refresh-token records whose expiration has passed."""
    async def main():
        async with async_session_factory() as session:
            return await purge_expired(session)

    purged = asyncio.run(main())
    print(f"✅ Purged {purged} expired refresh tokens")


if __name__ == "__main__":
    cli()
