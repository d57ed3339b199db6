"""Delete expired email verification tokens.

Meant for a cron job or scheduled container:

    lyricauth-purge-tokens
"""

import asyncio
import logging

from lyricauth.core.config import settings
from lyricauth.core.database import async_session_factory, engine
from lyricauth.core.email import NullMailer
from lyricauth.services.auth_service import AuthService

logger = logging.getLogger(__name__)


async def purge() -> int:
    """Run one purge pass against the configured database."""
    try:
        async with async_session_factory() as session:
            service = AuthService(session, settings=settings, mailer=NullMailer())
            return await service.purge_expired_tokens()
    finally:
        await engine.dispose()


def main() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    deleted = asyncio.run(purge())
    logger.info("Done: %d expired tokens removed", deleted)


if __name__ == "__main__":
    main()
