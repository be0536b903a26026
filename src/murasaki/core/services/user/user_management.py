"""Mirror of provider identities into local users."""

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from src.murasaki.core.errors import IdentityMirrorError
from src.murasaki.core.models.claims import VerifiedClaims
from src.murasaki.entities.core.user import User, UserRepository


class UserManagementService:
    """Keeps one local ``User`` per provider subject.

    The identity provider is the source of truth for email and names: every
    successful verification overwrites them, so local edits do not survive
    the next login. Claims the token does not carry are stored as NULL.
    """

    def __init__(self, db_session: AsyncSession):
        self._db = db_session
        self._user_repo = UserRepository(db_session)

    async def mirror_identity(self, claims: VerifiedClaims) -> User:
        """Create or refresh the local user for ``claims.subject``.

        Raises:
            IdentityMirrorError: If the upsert or commit fails
        """
        try:
            user = await self._user_repo.upsert_by_subject(
                claims.subject,
                email=claims.email,
                first_name=claims.given_name,
                last_name=claims.family_name,
            )
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._db.rollback()
            logger.exception("Failed to mirror identity for sub={}", claims.subject)
            raise IdentityMirrorError(
                f"Could not mirror identity for {claims.subject}"
            ) from exc

        logger.debug("Mirrored sub={} as user {}", claims.subject, user.id)
        return user
