"""
Client for remote functions that perform privileged operations.

User creation, updates, deletion, email changes and AI question generation
run as remote functions with elevated credentials. Each call posts a JSON
payload and gets back `{"success": bool, "data": ..., "error": ...}`.

Calls never raise: failures come back as ServiceResponse(success=False) so
the caller can surface the error and leave local state untouched. There are
no retries.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

ADMIN_OPERATIONS = "admin-operations"
GENERATE_QUESTIONS = "generate-assessment-questions"


@dataclass
class ServiceResponse:
    success: bool
    data: Any = None
    error: Optional[str] = None


class FunctionClient:
    """Invokes named remote functions over HTTP."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def invoke(self, function_name: str, payload: Dict[str, Any]) -> ServiceResponse:
        """
        Invoke a remote function.

        Args:
            function_name: Remote function name, appended to the base URL
            payload: JSON body

        Returns:
            ServiceResponse with data on success, error message on failure
        """
        url = f"{self.base_url}/{function_name}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            message = _error_from_response(e.response) or f"Function {function_name} returned {e.response.status_code}"
            logger.error(f"Error invoking function {function_name}: {message}")
            return ServiceResponse(success=False, error=message)
        except httpx.HTTPError as e:
            logger.error(f"Error invoking function {function_name}: {e}")
            return ServiceResponse(success=False, error=f"Function {function_name} unreachable: {e}")
        except ValueError as e:
            logger.error(f"Function {function_name} returned invalid JSON: {e}")
            return ServiceResponse(success=False, error=f"Function {function_name} returned an invalid response")

        if not isinstance(body, dict) or not body.get("success"):
            error = body.get("error") if isinstance(body, dict) else None
            message = error or f"Function {function_name} failed"
            logger.error(f"Function {function_name} reported failure: {message}")
            return ServiceResponse(success=False, error=message)

        return ServiceResponse(success=True, data=body.get("data"))


def _error_from_response(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("error")
    return None


class UserService:
    """Privileged user management through the admin-operations function."""

    def __init__(self, client: FunctionClient):
        self.client = client

    def create_user(self, user_data: Dict[str, Any]) -> ServiceResponse:
        logger.info(f"Creating user {user_data.get('email')} with role {user_data.get('role')}")
        return self.client.invoke(ADMIN_OPERATIONS, {"operation": "createUser", "data": user_data})

    def update_user(self, user_id: str, user_data: Dict[str, Any]) -> ServiceResponse:
        if not user_id:
            return ServiceResponse(success=False, error="User ID is required for update")
        logger.info(f"Updating user {user_id}")
        return self.client.invoke(ADMIN_OPERATIONS, {"operation": "updateUser", "data": {"id": user_id, **user_data}})

    def delete_user(self, user_id: str) -> ServiceResponse:
        logger.info(f"Deleting user {user_id}")
        return self.client.invoke(ADMIN_OPERATIONS, {"operation": "deleteUser", "data": {"userId": user_id}})

    def change_email(self, user_id: str, new_email: str) -> ServiceResponse:
        logger.info(f"Changing email for user {user_id}")
        return self.client.invoke(ADMIN_OPERATIONS, {"operation": "updateEmail", "data": {"userId": user_id, "email": new_email}})


def generate_questions(client: FunctionClient, topic: str, count: int, difficulty: Optional[str] = None) -> ServiceResponse:
    """Ask the question generation function for multiple-choice questions."""
    return client.invoke(GENERATE_QUESTIONS, {"topic": topic, "count": count, "difficulty": difficulty})


def get_function_client() -> FunctionClient:
    """FastAPI dependency; overridden in tests."""
    return FunctionClient(
        base_url=settings.FUNCTIONS_BASE_URL,
        api_key=settings.FUNCTIONS_API_KEY,
        timeout=settings.FUNCTIONS_TIMEOUT_SECONDS,
    )
