"""Credential setup workflow: obtain, verify and save OAuth1 keys."""

import asyncio
import webbrowser
from pathlib import Path
from typing import Callable, Optional

import requests
from requests_oauthlib import OAuth1Session
from rich.console import Console

from xeet.core.api_client import SignedRequestExecutor
from xeet.core.rate_limiter import TokenBucket
from xeet.security.credential_store import CredentialStore, Credentials
from xeet.utils.config_manager import ApiConfig, ConfigManager
from xeet.utils.console import (
    get_console,
    print_error,
    print_info,
    print_status,
    print_success,
    print_warning,
)
from xeet.utils.errors import AuthenticationError, XeetError, format_error_message
from xeet.utils.logging import async_log_call, get_logger

from .input import AuthInputManager

logger = get_logger(__name__)

METHODS = [
    "Easy Setup (PIN-based OAuth with browser)",
    "Manual Setup (enter all 4 API keys)",
]


class AuthWorkflow:
    """Orchestrates credential setup.

    1. Choose PIN-based or manual setup
    2. Collect the consumer keys (and PIN or access tokens)
    3. Verify against the identity endpoint
    4. Save the credentials, encrypted
    """

    def __init__(
        self,
        store: CredentialStore,
        api_config: Optional[ApiConfig] = None,
        input_manager: Optional[AuthInputManager] = None,
        console: Optional[Console] = None,
        session_factory: Callable[..., OAuth1Session] = OAuth1Session,
        open_browser: Callable[[str], bool] = webbrowser.open,
    ):
        self.store = store
        self.api = api_config or ApiConfig()
        self.input = input_manager or AuthInputManager()
        self.console = console or get_console()
        self.session_factory = session_factory
        self.open_browser = open_browser

    async def _prompt_consumer_keys(self) -> Optional[tuple]:
        api_key = await self.input.prompt_value("API Key (Consumer Key)")
        if api_key is None:
            return None

        api_secret = await self.input.prompt_value("API Secret (Consumer Secret)", secret=True)
        if api_secret is None:
            return None

        return api_key, api_secret

    async def _manual_setup(self) -> Optional[Credentials]:
        print_status("\nManual Setup - enter the four keys from https://developer.x.com/", self.console)

        keys = await self._prompt_consumer_keys()
        if keys is None:
            return None

        access_token = await self.input.prompt_value("Access Token")
        if access_token is None:
            return None

        access_token_secret = await self.input.prompt_value("Access Token Secret", secret=True)
        if access_token_secret is None:
            return None

        return Credentials(
            api_key=keys[0],
            api_secret=keys[1],
            access_token=access_token,
            access_token_secret=access_token_secret,
        )

    def _request_authorization(self, api_key: str, api_secret: str) -> tuple:
        """Fetch a request token and build the authorization URL (blocking)."""
        oauth = self.session_factory(api_key, client_secret=api_secret, callback_uri="oob")
        token = oauth.fetch_request_token(self.api.request_token_url)
        return token, oauth.authorization_url(self.api.authorize_url)

    def _exchange_pin(self, api_key: str, api_secret: str, token: dict, pin: str) -> dict:
        """Exchange the request token and PIN for access tokens (blocking)."""
        oauth = self.session_factory(
            api_key,
            client_secret=api_secret,
            resource_owner_key=token["oauth_token"],
            resource_owner_secret=token["oauth_token_secret"],
            verifier=pin,
        )
        return oauth.fetch_access_token(self.api.access_token_url)

    async def _easy_setup(self) -> Optional[Credentials]:
        print_status("\nEasy PIN-based OAuth Setup", self.console)
        print_info("STEP 1: Get your app's API keys at https://developer.x.com/", self.console)

        keys = await self._prompt_consumer_keys()
        if keys is None:
            return None
        api_key, api_secret = keys

        try:
            token, auth_url = await asyncio.to_thread(self._request_authorization, api_key, api_secret)
        except (ValueError, requests.RequestException) as e:
            raise AuthenticationError(f"Failed to get request token: {e}") from e

        print_info("\nSTEP 2: Authorize with X.com", self.console)
        print_info(f"Opening browser to: {auth_url}", self.console)
        print_info("Click 'Authorize app', then enter the PIN shown below.", self.console)
        if not self.open_browser(auth_url):
            print_warning("Could not open a browser - open the URL above manually.", self.console)

        pin = await self.input.prompt_value("Enter PIN from X.com")
        if pin is None:
            return None

        try:
            access = await asyncio.to_thread(self._exchange_pin, api_key, api_secret, token, pin)
        except (ValueError, KeyError, requests.RequestException) as e:
            raise AuthenticationError(f"Failed to get access token: {e}") from e

        return Credentials(
            api_key=api_key,
            api_secret=api_secret,
            access_token=access.get("oauth_token", ""),
            access_token_secret=access.get("oauth_token_secret", ""),
            user_id=access.get("user_id", ""),
            username=access.get("screen_name", ""),
        )

    async def _verify(self, credentials: Credentials) -> Credentials:
        """Verify credentials and fill in the identity fields.

        Raises:
            XeetError: the classified verification failure
        """
        executor = SignedRequestExecutor(credentials, TokenBucket.unlimited(), self.api)
        try:
            outcome = await executor.verify_credentials()
        finally:
            executor.close()

        if not outcome.ok:
            raise outcome.error

        user = outcome.data.get("data", {}) if isinstance(outcome.data, dict) else {}
        return credentials.model_copy(update={
            "user_id": str(user.get("id") or credentials.user_id),
            "username": user.get("username") or credentials.username,
        })

    @async_log_call
    async def execute(self) -> bool:
        """Run the setup flow. Returns True once credentials are saved."""
        print_status("\nSetting up X.com authentication...\n", self.console)

        try:
            choice = await self.input.choose("Choose authentication method", METHODS)
            if choice is None:
                print_info("Setup cancelled", self.console)
                return False

            credentials = await (self._easy_setup() if choice == 0 else self._manual_setup())
            if credentials is None:
                print_info("Setup cancelled", self.console)
                return False

            print_status("Verifying credentials...", self.console)
            credentials = await self._verify(credentials)
            await asyncio.to_thread(self.store.save, credentials)

        except XeetError as e:
            logger.error(f"Auth setup failed: {e.message}")
            print_error(format_error_message(e), self.console)
            return False

        name = f"@{credentials.username}" if credentials.username else "your account"
        print_success(f"Authenticated as {name}. Run 'xeet' to start posting.", self.console)
        return True


## Factory function


async def setup_credentials(config: Optional[ConfigManager] = None, console: Optional[Console] = None) -> bool:
    """Run the interactive credential setup with configured storage."""
    config = config or ConfigManager()
    app_config = config.config

    store = CredentialStore(
        Path(app_config.storage.credentials_path),
        Path(app_config.storage.key_path),
    )
    return await AuthWorkflow(store, app_config.api, console=console).execute()
