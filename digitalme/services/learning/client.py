from typing import Any

import httpx
from loguru import logger

from digitalme.core.base_client import BaseClient
from digitalme.core.config import settings
from digitalme.core.constants import REFINE_PATH, VALIDATION_ERROR_CODE


class RefinementError(Exception):
    """Transport failure, non-2xx status, or a response body that cannot be trusted."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


class RefinementValidationError(RefinementError):
    """The request itself was rejected as invalid. Retrying cannot help."""

    def __init__(self, message: str):
        super().__init__(message, code=VALIDATION_ERROR_CODE)


def is_retryable_refinement_error(exc: BaseException) -> bool:
    return isinstance(exc, RefinementError) and not isinstance(exc, RefinementValidationError)


def _error_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class RefinementClient(BaseClient):
    """
    Client for the remote refinement operation.

    Sends exactly one request per call; retrying is the caller's decision.
    """

    def __init__(
        self,
        base_url: str = settings.REFINE_API_URL,
        timeout: float = settings.REFINE_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def refine(self, current_profile: dict[str, Any], new_messages: list[str]) -> Any:
        """
        POST the profile and messages to the refinement endpoint.

        Returns:
            The decoded JSON body of a 2xx response

        Raises:
            RefinementValidationError: The server rejected the request as invalid
            RefinementError: Any other failure, including timeouts
        """
        payload = {"currentProfile": current_profile, "newMessages": new_messages}
        try:
            return await self.post(REFINE_PATH, json=payload)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            body = _error_body(e.response)
            message = body.get("message") or body.get("error") or e.response.reason_phrase
            if body.get("code") == VALIDATION_ERROR_CODE:
                raise RefinementValidationError(f"Refinement rejected: {message}") from e
            logger.warning(f"Refinement endpoint returned HTTP {status}: {message}")
            raise RefinementError(f"HTTP {status}: {message}", code=body.get("code")) from e
        except httpx.TimeoutException as e:
            raise RefinementError(f"Refinement request timed out after {self.timeout}s") from e
        except httpx.RequestError as e:
            raise RefinementError(f"Refinement request failed: {e}") from e
        except ValueError as e:
            raise RefinementError("Refinement response was not valid JSON") from e
