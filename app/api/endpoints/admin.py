"""
Admin user management.

Account creation, updates, deletion and email changes need privileged
credentials, so they are forwarded to the admin-operations remote function.
A failed call is reported as 502 and nothing changes locally.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException
from app.core.deps import AuthContext, require_admin
from app.schemas.user import EmailChangeRequest, RemoteOperationResponse, UserCreateRequest, UserUpdateRequest
from app.services.functions import FunctionClient, ServiceResponse, UserService, get_function_client

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger(__name__)


def get_user_service(client: FunctionClient = Depends(get_function_client)) -> UserService:
    return UserService(client)


def _to_response(response: ServiceResponse) -> RemoteOperationResponse:
    if not response.success:
        raise HTTPException(status_code=502, detail=response.error or "Remote operation failed")
    return RemoteOperationResponse(success=True, data=response.data)


@router.post("/users", status_code=201, response_model=RemoteOperationResponse)
def create_user(
    request: UserCreateRequest,
    auth: AuthContext = Depends(require_admin),
    users: UserService = Depends(get_user_service)
):
    logger.info(f"Admin {auth.user_id} creating user {request.email}")
    return _to_response(users.create_user(request.model_dump(mode="json", exclude_none=True)))


@router.put("/users/{user_id}", response_model=RemoteOperationResponse)
def update_user(
    user_id: str,
    request: UserUpdateRequest,
    auth: AuthContext = Depends(require_admin),
    users: UserService = Depends(get_user_service)
):
    return _to_response(users.update_user(user_id, request.model_dump(mode="json", exclude_none=True)))


@router.delete("/users/{user_id}", response_model=RemoteOperationResponse)
def delete_user(
    user_id: str,
    auth: AuthContext = Depends(require_admin),
    users: UserService = Depends(get_user_service)
):
    if user_id == auth.user_id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")

    logger.info(f"Admin {auth.user_id} deleting user {user_id}")
    return _to_response(users.delete_user(user_id))


@router.post("/users/{user_id}/email", response_model=RemoteOperationResponse)
def change_user_email(
    user_id: str,
    request: EmailChangeRequest,
    auth: AuthContext = Depends(require_admin),
    users: UserService = Depends(get_user_service)
):
    return _to_response(users.change_email(user_id, request.email))
