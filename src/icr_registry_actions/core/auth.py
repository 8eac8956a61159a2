"""IBM Cloud IAM authentication."""

from typing import Optional

import aiohttp
import jwt
import structlog

from ..exceptions import AuthenticationError, RegistryConnectionError

logger = structlog.stdlib.get_logger(__name__)

APIKEY_GRANT_TYPE = "urn:ibm:params:oauth:grant-type:apikey"


class IamTokenProvider:
    """Exchanges an API key for an IAM bearer token.

    The token is fetched once and reused for the rest of the invocation.
    """

    def __init__(self, apikey: str, iam_url: str) -> None:
        self.apikey = apikey
        self.iam_url = iam_url
        self._token: Optional[str] = None

    async def token(self, session: aiohttp.ClientSession) -> str:
        """Return a bearer token, requesting one on first use.

        Raises:
            AuthenticationError: If IAM rejects the API key
            RegistryConnectionError: If IAM cannot be reached
        """
        if self._token is None:
            self._token = await self._request_token(session)
        return self._token

    async def account_id(self, session: aiohttp.ClientSession) -> Optional[str]:
        """Read the account id from the token's ``account.bss`` claim."""
        token = await self.token(session)
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError:
            logger.warning("IAM token is not a readable JWT, no account header")
            return None
        return claims.get("account", {}).get("bss")

    async def _request_token(self, session: aiohttp.ClientSession) -> str:
        try:
            async with session.post(
                self.iam_url,
                data={"grant_type": APIKEY_GRANT_TYPE, "apikey": self.apikey},
                headers={"Accept": "application/json"},
            ) as resp:
                if resp.status in (400, 401, 403):
                    raise AuthenticationError(
                        f"IAM rejected the API key (HTTP {resp.status})"
                    )
                resp.raise_for_status()
                data = await resp.json()
        except aiohttp.ClientError as e:
            raise RegistryConnectionError(f"Failed to reach IAM: {e}") from e

        token = data.get("access_token")
        if not token:
            raise AuthenticationError("IAM response did not contain an access token")

        logger.debug("Retrieved IAM access token")
        return token
