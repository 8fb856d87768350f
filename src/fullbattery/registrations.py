from __future__ import annotations

import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class Subscription:
    def __init__(self, release: Callable[[], None], name: str = "") -> None:
        self._release: Optional[Callable[[], None]] = release
        self.name = name

    @property
    def active(self) -> bool:
        return self._release is not None

    def dispose(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()


class Registrations:
    def __init__(self) -> None:
        self._tokens: List[Subscription] = []

    def __len__(self) -> int:
        return len(self._tokens)

    def __enter__(self) -> "Registrations":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # Only release on failure; a successful setup keeps its registrations.
        if exc_type is not None:
            self.dispose_all()

    def add(self, token: Subscription) -> Subscription:
        self._tokens.append(token)
        return token

    def dispose_all(self) -> None:
        errors: List[Exception] = []
        while self._tokens:
            token = self._tokens.pop()
            logger.debug("Releasing subscription %s", token.name or token)
            try:
                token.dispose()
            except Exception as exc:
                errors.append(exc)
        if errors:
            raise errors[0]
