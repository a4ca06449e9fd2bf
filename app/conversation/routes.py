"""
app/conversation/routes.py

Chat endpoints for every authenticated role:
- Start a conversation (private, or support when started by an admin)
- Send a message to a conversation
- List my conversations, latest activity first
- Retrieve a conversation with its messages

Only participants can see or post to a conversation.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from app.conversation import schemas
from app.conversation.services import ConversationService
from app.core.dependencies import CurrentUserDep, DBDep, PaginationParams
from app.core.limiter import limiter
from app.core.schemas import PaginatedResponse

router = APIRouter(prefix="/conversations", tags=["Conversations"])


@router.post(
    "",
    response_model=schemas.ConversationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Start Conversation",
    description="Opens (or reuses) a private chat; admins may open multi-party support threads.",
)
@limiter.limit("10/minute")
async def start_conversation(
    request: Request,
    data: schemas.ConversationCreate,
    db: DBDep,
    current_user: CurrentUserDep,
) -> schemas.ConversationRead:
    return await ConversationService(db).create_conversation(current_user, data)


@router.get(
    "",
    response_model=PaginatedResponse[schemas.ConversationSummary],
    summary="List My Conversations",
)
@limiter.limit("30/minute")
async def list_my_conversations(
    request: Request,
    db: DBDep,
    current_user: CurrentUserDep,
    pagination: Annotated[PaginationParams, Depends()],
) -> PaginatedResponse[schemas.ConversationSummary]:
    items, total = await ConversationService(db).list_conversations(
        current_user.id, skip=pagination.skip, limit=pagination.limit
    )
    return PaginatedResponse.from_page(items, total, pagination.skip, pagination.limit)


@router.get(
    "/{conversation_id}",
    response_model=schemas.ConversationRead,
    summary="Get Conversation",
)
@limiter.limit("30/minute")
async def get_conversation(
    request: Request, conversation_id: UUID, db: DBDep, current_user: CurrentUserDep
) -> schemas.ConversationRead:
    return await ConversationService(db).get_conversation(conversation_id, current_user.id)


@router.post(
    "/{conversation_id}/messages",
    response_model=schemas.MessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send Message",
)
@limiter.limit("30/minute")
async def send_message(
    request: Request,
    conversation_id: UUID,
    data: schemas.MessageCreate,
    db: DBDep,
    current_user: CurrentUserDep,
) -> schemas.MessageRead:
    return await ConversationService(db).send_message(current_user, conversation_id, data)
