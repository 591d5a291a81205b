from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from pawmatch.core.exceptions import TokenInvalidError
from pawmatch.core.security import decode_access_token
from pawmatch.database import get_db
from pawmatch.services.match_lifecycle import MatchLifecycle
from pawmatch.services.notifications import CollectingNotificationSink
from pawmatch.services.outcome_verification import OutcomeVerifier
from pawmatch.services.sql_store import SqlDogLookup, SqlMatchStore, SqlOutcomeStore

bearer_scheme = HTTPBearer(auto_error=False)


class BearerTokenAuthenticator:
    """Resolves the calling user from a bearer token issued by the auth service."""

    def __init__(self, token: str | None):
        self.token = token

    async def get_current_user(self) -> UUID | None:
        if not self.token:
            return None
        return decode_access_token(self.token)


async def get_authenticator(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> BearerTokenAuthenticator:
    return BearerTokenAuthenticator(credentials.credentials if credentials else None)


async def get_current_user_id(
    authenticator: Annotated[BearerTokenAuthenticator, Depends(get_authenticator)],
) -> UUID:
    user_id = await authenticator.get_current_user()
    if user_id is None:
        raise TokenInvalidError()
    return user_id


def get_notification_sink() -> CollectingNotificationSink:
    # One sink per request; FastAPI caches it for every dependency below
    return CollectingNotificationSink()


def get_dog_lookup(db: Annotated[AsyncSession, Depends(get_db)]) -> SqlDogLookup:
    return SqlDogLookup(db)


def get_match_lifecycle(
    db: Annotated[AsyncSession, Depends(get_db)],
    sink: Annotated[CollectingNotificationSink, Depends(get_notification_sink)],
) -> MatchLifecycle:
    return MatchLifecycle(SqlMatchStore(db), SqlDogLookup(db), sink)


def get_outcome_verifier(
    db: Annotated[AsyncSession, Depends(get_db)],
    authenticator: Annotated[BearerTokenAuthenticator, Depends(get_authenticator)],
    sink: Annotated[CollectingNotificationSink, Depends(get_notification_sink)],
) -> OutcomeVerifier:
    return OutcomeVerifier(
        SqlDogLookup(db),
        SqlMatchStore(db),
        SqlOutcomeStore(db),
        auth=authenticator,
        sink=sink,
    )
