"""Blue Button SDK facade.

Ties configuration, PKCE generation, the authorize redirect and the token
endpoint together behind one object.
"""

from __future__ import annotations

import logging
from types import TracebackType

import httpx

from bluebutton.auth.client.models.security import AuthData
from bluebutton.auth.client.models.tokens import AuthorizationToken
from bluebutton.auth.client.primitives.pkce import PKCEManager
from bluebutton.auth.client.services.flow import generate_authorize_url
from bluebutton.auth.client.services.tokens import OAuth2TokenManager
from bluebutton.config import BlueButtonConfig, ConfigSource, load_config

logger = logging.getLogger(__name__)


class BlueButton:
    """Entry point for authorizing against the Blue Button 2.0 API.

    Typical use::

        bb = BlueButton("path/to/.bluebutton-config.json")
        auth_data = bb.generate_auth_data()
        redirect_to(bb.generate_authorize_url(auth_data))
        ...
        token = await bb.get_authorization_token(auth_data, code, state, error)
        token = await bb.refresh_auth_token(token)

    Keep one ``AuthData`` per authorization attempt; the SDK holds no
    per-attempt state.
    """

    def __init__(
        self,
        config: ConfigSource = None,
        http_client: httpx.AsyncClient | None = None,
        pkce_manager: PKCEManager | None = None,
    ):
        """Initialize the SDK.

        Args:
            config: Config object, mapping, JSON file path, or None for
                ``.bluebutton-config.json`` in the working directory
            http_client: Optional client for token endpoint requests
            pkce_manager: Optional PKCE generator, e.g. with a seeded source
        """
        self.config: BlueButtonConfig = load_config(config)
        self._pkce_manager = pkce_manager or PKCEManager()
        self._token_manager = OAuth2TokenManager(http_client=http_client)

        logger.debug(f"Initialized Blue Button SDK for {self.config.base_url}")

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def version(self) -> str:
        return self.config.version

    @property
    def client_id(self) -> str:
        return self.config.client_id

    @property
    def client_secret(self) -> str:
        return self.config.client_secret

    @property
    def callback_url(self) -> str:
        return self.config.callback_url

    def generate_auth_data(self) -> AuthData:
        """Generate PKCE and state values for a new authorization attempt."""
        return self._pkce_manager.generate_auth_data()

    def generate_authorize_url(self, auth_data: AuthData) -> str:
        """Build the URL to redirect the user to for this attempt."""
        return generate_authorize_url(self.config, auth_data)

    async def get_authorization_token(
        self,
        auth_data: AuthData,
        code: str | None = None,
        state: str | None = None,
        error: str | None = None,
    ) -> AuthorizationToken:
        """Validate the callback and exchange its code for an access token."""
        return await self._token_manager.exchange_code(
            self.config, auth_data, code, state, error
        )

    async def refresh_auth_token(
        self, auth_token: AuthorizationToken
    ) -> AuthorizationToken:
        """Return a new token obtained with ``auth_token``'s refresh token."""
        return await self._token_manager.refresh_token(auth_token, self.config)

    async def close(self) -> None:
        await self._token_manager.close()

    async def __aenter__(self) -> BlueButton:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
