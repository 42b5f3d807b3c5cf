"""Authentication module for loading the Notion integration token.

The token is read from the environment, with a .env file loaded through
python-dotenv. It is never cached or logged.
"""

import os
from typing import Optional

from dotenv import load_dotenv

from .errors import InvalidTokenError

TOKEN_ENV_VAR = 'NOTION_TOKEN'


class Authenticator:
    """Loads and validates the Notion integration token.

    Required environment variables:
        NOTION_TOKEN: Internal integration secret

    Optional environment variables:
        HTTPS_PROXY / HTTP_PROXY: Forward proxy for outbound requests

    Example:
        >>> auth = Authenticator()
        >>> headers = {"Authorization": f"Bearer {auth.get_token()}"}
    """

    def __init__(self, token: Optional[str] = None):
        """Initialize the authenticator.

        Args:
            token: Explicit token; when omitted the token is read from the
                environment after loading a .env file
        """
        self._token = token
        load_dotenv()

    def get_token(self) -> str:
        """Get the Notion integration token.

        Returns:
            The token string

        Raises:
            InvalidTokenError: If no token is configured
        """
        token = self._token or os.getenv(TOKEN_ENV_VAR)
        if not token or not token.strip():
            raise InvalidTokenError(
                f"Missing Notion token: set {TOKEN_ENV_VAR} in the environment or .env file"
            )
        return token.strip()

    @staticmethod
    def get_proxy_url() -> Optional[str]:
        """Return the forward proxy configured in the environment, if any."""
        return os.getenv('HTTPS_PROXY') or os.getenv('HTTP_PROXY') or None
