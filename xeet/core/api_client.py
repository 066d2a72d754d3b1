"""OAuth1-signed HTTP client for the posting and identity endpoints."""

import asyncio
from typing import Any, Dict, Optional

import requests
from requests_oauthlib import OAuth1

from xeet.security.credential_store import CredentialStore, Credentials
from xeet.utils.config_manager import ApiConfig
from xeet.utils.errors import (
    ApiError,
    ErrorHandler,
    MediaUploadFailed,
    MissingCredentialsError,
    NetworkError,
    NetworkTimeoutError,
    XeetError,
)
from xeet.utils.logging import async_log_call, get_logger, log_event

from .constants import (
    HTTP_CREATED,
    HTTP_OK,
    MEDIA_FILENAME,
    MEDIA_FORM_FIELD,
    REQUEST_TIMEOUT,
)
from .models import PostOutcome
from .rate_limiter import TokenBucket

logger = get_logger(__name__)


def build_post_body(text: str, media_id: Optional[str] = None) -> Dict[str, Any]:
    """JSON body for the message-creation endpoint."""
    body: Dict[str, Any] = {"text": text}
    if media_id:
        body["media"] = {"media_ids": [media_id]}
    return body


class SignedRequestExecutor:
    """Performs OAuth1-signed requests against the API.

    Every public coroutine returns a ``PostOutcome``; network, protocol and
    rate-limit errors are classified here and never propagate to callers.
    """

    def __init__(
        self,
        credentials: Credentials,
        rate_limiter: TokenBucket,
        api_config: Optional[ApiConfig] = None,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.api = api_config or ApiConfig()
        self.rate_limiter = rate_limiter
        self.timeout = timeout
        self.session = session or requests.Session()
        self.auth = OAuth1(
            credentials.api_key,
            client_secret=credentials.api_secret,
            resource_owner_key=credentials.access_token,
            resource_owner_secret=credentials.access_token_secret,
            signature_method="HMAC-SHA1",
        )

    def close(self) -> None:
        self.session.close()

    async def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        """Send one signed request off the event loop under an overall deadline."""

        call = asyncio.to_thread(
            self.session.request,
            method,
            url,
            auth=self.auth,
            timeout=self.timeout,
            **kwargs,
        )

        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except (asyncio.TimeoutError, requests.Timeout) as e:
            raise NetworkTimeoutError(
                f"Request to {url} timed out after {self.timeout:.0f}s",
                details={"url": url},
            ) from e
        except requests.RequestException as e:
            raise NetworkError(f"Request to {url} failed: {e}", details={"url": url}) from e

    ## Individual exchanges

    async def upload_media(self, data: bytes) -> str:
        """Upload an image and return its media id.

        Raises:
            MediaUploadFailed: on transport failure, non-2xx, or a bad body
        """
        url = self.api.media_upload_url

        try:
            response = await self._request(
                "POST", url, files={MEDIA_FORM_FIELD: (MEDIA_FILENAME, data)}
            )
        except NetworkError as e:
            raise MediaUploadFailed(f"Media upload failed: {e.message}", details=e.details) from e

        if not 200 <= response.status_code < 300:
            raise MediaUploadFailed(
                f"Media upload failed {response.status_code}: {response.text}",
                details={"status": response.status_code, "body": response.text},
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise MediaUploadFailed("Media upload returned invalid JSON") from e

        media_id = payload.get("media_id_string") if isinstance(payload, dict) else None
        if not media_id:
            raise MediaUploadFailed(
                "Media upload response has no media id", details={"body": response.text}
            )

        logger.debug(f"Uploaded media {media_id} ({len(data)} bytes)")
        return str(media_id)

    async def create_post(self, text: str, media_id: Optional[str] = None) -> Dict[str, Any]:
        """Create the message. Returns the decoded response body.

        Raises:
            ApiError: on any status other than 201
        """
        response = await self._request(
            "POST", self.api.messages_url, json=build_post_body(text, media_id)
        )

        if response.status_code != HTTP_CREATED:
            raise ApiError(response.status_code, response.text)

        try:
            return response.json()
        except ValueError:
            return {}

    ## Operations

    @async_log_call
    async def post_message(self, text: str, media: Optional[bytes] = None) -> PostOutcome:
        """Upload optional media, wait for a permit, then create the post."""

        try:
            media_id = None
            if media:
                media_id = await self.upload_media(media)

            await self.rate_limiter.acquire()

            data = await self.create_post(text, media_id)

        except XeetError as e:
            logger.error(f"Post failed: {e.message}", extra={"error_type": type(e).__name__})
            return PostOutcome.failure(e)

        except Exception as e:
            ErrorHandler.handle(e, "post_message")
            return PostOutcome.failure(XeetError(f"Unexpected error: {e}"))

        log_event("post_created", "Post created", has_media=media is not None)
        return PostOutcome.success(data)

    @async_log_call
    async def verify_credentials(self) -> PostOutcome:
        """Ask the identity endpoint who the credentials belong to."""

        try:
            response = await self._request("GET", self.api.identity_url)

            if response.status_code != HTTP_OK:
                raise ApiError(response.status_code, response.text)

            try:
                data = response.json()
            except ValueError:
                data = {}

        except XeetError as e:
            logger.error(f"Credential verification failed: {e.message}")
            return PostOutcome.failure(e)

        except Exception as e:
            ErrorHandler.handle(e, "verify_credentials")
            return PostOutcome.failure(XeetError(f"Unexpected error: {e}"))

        return PostOutcome.success(data)


class PostSubmitter:
    """Background submission: load credentials, then post via the executor.

    Holds the process-wide rate limiter so consecutive submissions share it.
    """

    def __init__(
        self,
        store: CredentialStore,
        rate_limiter: TokenBucket,
        api_config: Optional[ApiConfig] = None,
        executor_factory=SignedRequestExecutor,
    ):
        self.store = store
        self.rate_limiter = rate_limiter
        self.api_config = api_config or ApiConfig()
        self.executor_factory = executor_factory

    async def __call__(self, text: str, media: Optional[bytes] = None) -> PostOutcome:
        try:
            credentials = await asyncio.to_thread(self.store.load)
        except XeetError as e:
            logger.error(f"Could not load credentials: {e.message}")
            return PostOutcome.failure(e)

        if not credentials.has_access_token:
            return PostOutcome.failure(MissingCredentialsError())

        executor = self.executor_factory(credentials, self.rate_limiter, self.api_config)
        try:
            return await executor.post_message(text, media)
        finally:
            executor.close()
