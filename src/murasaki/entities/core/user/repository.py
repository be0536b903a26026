"""User data-access layer."""

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.murasaki.entities.core._base import new_id, utc_now
from src.murasaki.entities.core.user.entity import User
from src.murasaki.entities.core.user.table import UserTable

_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class UserRepository:
    """Data-access layer for users."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_subject(self, subject: str) -> User | None:
        statement = select(UserTable).where(UserTable.subject == subject)
        row = (await self._session.exec(statement)).first()
        if row is None:
            return None
        return User.model_validate(row, from_attributes=True)

    async def count(self) -> int:
        statement = select(func.count()).select_from(UserTable)
        return (await self._session.exec(statement)).one()

    async def upsert_by_subject(
        self,
        subject: str,
        *,
        email: str | None,
        first_name: str | None,
        last_name: str | None,
    ) -> User:
        """Insert the user or overwrite its profile fields, in one statement.

        ``INSERT ... ON CONFLICT (subject) DO UPDATE ... RETURNING`` lets the
        database arbitrate concurrent first logins: exactly one insert wins and
        the others become updates of that same row.
        """
        dialect = self._session.get_bind().dialect.name
        insert = _UPSERT_DIALECTS[dialect]

        now = utc_now()
        stmt = insert(UserTable).values(
            id=new_id(),
            subject=subject,
            email=email,
            first_name=first_name,
            last_name=last_name,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["subject"],
            set_={
                "email": stmt.excluded.email,
                "first_name": stmt.excluded.first_name,
                "last_name": stmt.excluded.last_name,
                "updated_at": stmt.excluded.updated_at,
            },
        )

        result = await self._session.scalars(
            stmt.returning(UserTable),
            execution_options={"populate_existing": True},
        )
        row = result.one()
        return User.model_validate(row, from_attributes=True)
