"""
ActorResolver -- who is performing the stock-out.

Responsibility:
    Produces the user id written to created_by / approved_by / posted_by.
    The caller configures an ordered list of strategies; the first one that
    yields an *active* user wins:

        ExplicitActorStrategy        an id passed with the request
        CurrentSessionStrategy       the in-memory current session
                                     (context variable, see acting_as())
        LocalSessionFileStrategy     a persisted session token, a JSON file
                                     holding {"userId": ...}
        ExternalAuthStrategy         an externally authenticated session,
                                     resolved by e-mail against the users table
        RecentOnlineUserStrategy     opt-in heuristic: the most recently active
                                     user with status online in the last 24h

Architecture position:
    Kernel > Services.  Read-only.  The orchestrator depends only on
    ActorResolver; nothing here is global except the current-session
    context variable, which is scoped per thread / task.

Failure modes:
    - A failing strategy (unreadable token file, malformed id, database
      error) is logged as ``actor_strategy_failed`` and the next strategy
      is tried.
    - NotAuthenticatedError when every strategy comes up empty.  An explicit
      id that is malformed, unknown or inactive is an error in itself; the
      ambient strategies are not consulted.
"""

import json
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import timedelta
from pathlib import Path
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockout_kernel.domain.clock import Clock, SystemClock
from stockout_kernel.exceptions import NotAuthenticatedError
from stockout_kernel.logging_config import get_logger
from stockout_kernel.models.user import User, UserStatus

logger = get_logger("services.actor_resolver")

_current_actor: ContextVar[UUID | None] = ContextVar("stockout_current_actor", default=None)


@contextmanager
def acting_as(user_id: UUID | str) -> Iterator[None]:
    """Set the in-memory current session user for the enclosed block."""
    token = _current_actor.set(UUID(str(user_id)))
    try:
        yield
    finally:
        _current_actor.reset(token)


def _active_user_id(session: Session, user_id: UUID | str) -> UUID | None:
    user = session.get(User, UUID(str(user_id)))
    if user is None or not user.is_active:
        return None
    return user.id


class ActorStrategy(ABC):
    """One way of finding the acting user."""

    name: str = "abstract"

    @abstractmethod
    def resolve(self, session: Session) -> UUID | None:
        """Active user id, or None when this strategy has nothing."""
        ...


class ExplicitActorStrategy(ActorStrategy):
    name = "explicit"

    def __init__(self, actor_id: UUID | str):
        self.actor_id = actor_id

    def resolve(self, session: Session) -> UUID | None:
        return _active_user_id(session, self.actor_id)


class CurrentSessionStrategy(ActorStrategy):
    name = "current_session"

    def resolve(self, session: Session) -> UUID | None:
        actor = _current_actor.get()
        if actor is None:
            return None
        return _active_user_id(session, actor)


class LocalSessionFileStrategy(ActorStrategy):
    """Reads ``userId`` from a JSON session file and checks the user store."""

    name = "local_session_file"

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def resolve(self, session: Session) -> UUID | None:
        if not self.path.exists():
            return None
        payload = json.loads(self.path.read_text(encoding="utf-8"))
        user_id = payload.get("userId") if isinstance(payload, dict) else None
        if not user_id:
            return None
        return _active_user_id(session, user_id)


class ExternalAuthStrategy(ActorStrategy):
    """
    Resolves the e-mail of an externally authenticated session.

    ``email_provider`` returns the signed-in e-mail or None.
    """

    name = "external_auth"

    def __init__(self, email_provider: Callable[[], str | None]):
        self.email_provider = email_provider

    def resolve(self, session: Session) -> UUID | None:
        email = self.email_provider()
        if not email:
            return None
        return session.execute(
            select(User.id).where(
                func.lower(User.email) == email.strip().lower(),
                User.is_active.is_(True),
            )
        ).scalar_one_or_none()


class RecentOnlineUserStrategy(ActorStrategy):
    """Most recently active online user, if active within ``window``."""

    name = "recent_online_user"

    def __init__(self, clock: Clock | None = None, window: timedelta = timedelta(hours=24)):
        self.clock = clock or SystemClock()
        self.window = window

    def resolve(self, session: Session) -> UUID | None:
        cutoff = self.clock.now() - self.window
        return session.execute(
            select(User.id)
            .where(
                User.status == UserStatus.ONLINE.value,
                User.is_active.is_(True),
                User.last_activity_at.is_not(None),
                User.last_activity_at >= cutoff,
            )
            .order_by(User.last_activity_at.desc())
            .limit(1)
        ).scalar_one_or_none()


class ActorResolver:
    """Tries its strategies in order; an explicit id replaces them all."""

    def __init__(self, strategies: Sequence[ActorStrategy] = ()):
        self.strategies = list(strategies)

    @classmethod
    def default(
        cls,
        session_file: Path | str | None = None,
        email_provider: Callable[[], str | None] | None = None,
    ) -> "ActorResolver":
        """Current session, then the optional session file and external auth."""
        strategies: list[ActorStrategy] = [CurrentSessionStrategy()]
        if session_file is not None:
            strategies.append(LocalSessionFileStrategy(session_file))
        if email_provider is not None:
            strategies.append(ExternalAuthStrategy(email_provider))
        return cls(strategies)

    def resolve(self, session: Session, explicit_actor_id: UUID | str | None = None) -> UUID:
        """
        The acting user's id.

        Raises:
            NotAuthenticatedError: no strategy produced an active user, or
                the explicit id is malformed, unknown or inactive.
        """
        # An explicit id is used as given: no other strategy may stand in for it
        if explicit_actor_id is not None:
            strategies = [ExplicitActorStrategy(explicit_actor_id)]
        else:
            strategies = list(self.strategies)

        attempted: list[str] = []
        for strategy in strategies:
            attempted.append(strategy.name)
            try:
                actor_id = strategy.resolve(session)
            except (OSError, ValueError, SQLAlchemyError) as exc:
                logger.warning(
                    "actor_strategy_failed",
                    extra={"strategy": strategy.name, "error": str(exc)},
                )
                continue
            if actor_id is not None:
                logger.debug(
                    "actor_resolved",
                    extra={"strategy": strategy.name, "actor_id": str(actor_id)},
                )
                return actor_id

        logger.warning("actor_not_resolved", extra={"attempted": attempted})
        raise NotAuthenticatedError(attempted)
