from __future__ import annotations

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """The request carries no usable identity."""


class UserDirectory:
    """
    Resolves the X-User-Id credential to a user id.

    With a user service configured the id must exist there
    (GET {base}/users/{id} answering 200); without one the header is trusted.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") if base_url else None
        self._timeout = timeout
        self._transport = transport

    async def resolve(self, credential: Optional[str]) -> str:
        user_id = (credential or "").strip()
        if not user_id:
            raise IdentityError("Missing user credential")
        if self.base_url is None:
            return user_id

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(f"{self.base_url}/users/{user_id}")
        except httpx.HTTPError:
            logger.warning("user service unreachable base=%s", self.base_url, exc_info=True)
            raise IdentityError("Unable to verify user")

        if response.status_code != 200:
            logger.info("rejected user=%s status=%s", user_id, response.status_code)
            raise IdentityError("Unknown user")
        return user_id
