"""Intake API: content pushed by the client ahead of the ledger trigger."""

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field, field_validator

from post_oracle.core.events import OracleState
from post_oracle.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(default_response_class=JSONResponse)


class StoreContentRequest(BaseModel):
    """Body of ``POST /store-content``."""

    submission_id: str = Field(
        validation_alias=AliasChoices("submissionId", "postId", "submission_id")
    )
    content: str
    username: str
    wallet_address: str = Field(
        validation_alias=AliasChoices("walletAddress", "wallet_address")
    )

    @field_validator("submission_id", mode="before")
    @classmethod
    def coerce_submission_id(cls, value: Any) -> Any:
        """Ledger ids are integers; clients may send them unquoted."""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class StoreContentResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    status: str
    pendingPosts: int
    activeTasks: int


def get_oracle_state(request: Request) -> OracleState:
    """Dependency returning the running oracle's state."""
    state = getattr(request.app.state, "oracle", None)
    if state is None:
        raise RuntimeError("Oracle is not initialized")
    return state


@router.post("/store-content", response_model=StoreContentResponse)
async def store_content(
    body: StoreContentRequest,
    oracle: OracleState = Depends(get_oracle_state),
) -> StoreContentResponse:
    """Buffer content until its similarity check runs.

    Overwrites any earlier push for the same submission.
    """
    logger.info("content_received", submission_id=body.submission_id)
    oracle.store.put(
        body.submission_id,
        content=body.content,
        username=body.username,
        wallet_address=body.wallet_address,
    )
    return StoreContentResponse(success=True, message="Content stored for processing")


@router.get("/health", response_model=HealthResponse)
async def health(oracle: OracleState = Depends(get_oracle_state)) -> dict[str, Any]:
    """Report buffered submission and active task counts."""
    return oracle.health()
