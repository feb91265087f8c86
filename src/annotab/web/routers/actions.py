"""Single action endpoint used by the browser extension."""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from annotab.actions import ActionRequest, ActionResult
from annotab.web.deps import AppDep

router: APIRouter = APIRouter(tags=["actions"])


class ErrorResponse(BaseModel):
    """Failure envelope."""

    success: bool = Field(False, description="Always false for failures")
    message: str = Field(..., description="Human-readable error message")


@router.post(
    "/api",
    summary="Run action",
    description="Run one action (INIT_PROJECT, GET_COMMENTS, CREATE_THREAD, ...) against the annotation tables.",
    operation_id="runAction",
    response_model_exclude_none=True,
    responses={
        200: {"description": "Action completed"},
        400: {"model": ErrorResponse, "description": "Invalid payload or unknown action"},
        404: {"model": ErrorResponse, "description": "Project or thread not found"},
        500: {"model": ErrorResponse, "description": "Server configuration error"},
        502: {"model": ErrorResponse, "description": "Record store call failed"},
    },
)
async def run_action(request: ActionRequest, app: AppDep) -> ActionResult:
    return await app.dispatch(request.action, request.payload)
