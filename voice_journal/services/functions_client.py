"""
Client for invoking the remote analysis functions.

By default the functions app is called in-process through an ASGI
transport; setting FUNCTIONS_BASE_URL sends the same requests over the
network to a separate deployment.
"""
from typing import Any, Dict, Optional

import httpx

from voice_journal.config import settings
from voice_journal.utils.logger import get_logger

logger = get_logger("services.functions_client")

IN_PROCESS_BASE_URL = "http://functions"


class FunctionInvocationError(Exception):
    """
    A function answered with an error payload or could not be reached.

    Attributes:
        function_name: Name of the invoked function
        status_code: HTTP status returned by the function (502 if unreachable)
        message: The function's error message
    """

    def __init__(self, function_name: str, status_code: int, message: str):
        super().__init__(f"{function_name} failed ({status_code}): {message}")
        self.function_name = function_name
        self.status_code = status_code
        self.message = message


class FunctionsClient:
    """Invokes functions by name with the caller's bearer token."""

    def __init__(
        self,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 120.0
    ):
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.timeout = timeout

    async def invoke(self, function_name: str, body: Dict[str, Any], token: str) -> Dict[str, Any]:
        """
        POST a JSON body to a function.

        Args:
            function_name: e.g. "transcribe-audio"
            body: JSON body
            token: Caller's access token, forwarded as bearer credentials

        Returns:
            Decoded JSON response

        Raises:
            FunctionInvocationError: On transport failure, error status or error payload
        """
        logger.info("Invoking function", function=function_name)

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                transport=self.transport,
                timeout=self.timeout
            ) as client:
                response = await client.post(
                    f"/{function_name}",
                    json=body,
                    headers={"Authorization": f"Bearer {token}"}
                )
        except httpx.HTTPError as e:
            logger.error("Function unreachable", function=function_name, error=str(e))
            raise FunctionInvocationError(function_name, 502, str(e)) from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            raise FunctionInvocationError(
                function_name,
                response.status_code if response.status_code >= 400 else 502,
                response.text or "Empty response"
            )

        if response.status_code >= 400 or "error" in payload:
            message = str(payload.get("error") or response.text)
            logger.warning(
                "Function returned an error",
                function=function_name,
                status_code=response.status_code,
                error=message
            )
            raise FunctionInvocationError(function_name, response.status_code, message)

        return payload


def get_functions_client() -> FunctionsClient:
    """Build the client for the configured deployment mode."""
    if settings.FUNCTIONS_BASE_URL:
        return FunctionsClient(
            base_url=settings.FUNCTIONS_BASE_URL,
            timeout=settings.FUNCTIONS_TIMEOUT_SECONDS
        )

    from voice_journal.functions.app import functions_app

    return FunctionsClient(
        base_url=IN_PROCESS_BASE_URL,
        transport=httpx.ASGITransport(app=functions_app),
        timeout=settings.FUNCTIONS_TIMEOUT_SECONDS
    )
