"""Conversations and Messages API routes.

Routes are transport-only: each calls exactly one service function.
All routes require authentication; only the two participants may access a
conversation or its messages (E_FORBIDDEN otherwise).
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from zenvi.api.deps import get_db
from zenvi.auth.middleware import Viewer, get_viewer
from zenvi.responses import success_response
from zenvi.schemas.conversation import (
    CreateConversationRequest,
    SendMessageRequest,
    UpdateConversationRequest,
    UpdateMessageRequest,
)
from zenvi.services import messaging as messaging_service

router = APIRouter()


# =============================================================================
# Conversation Endpoints
# =============================================================================


@router.get("/conversations")
def list_conversations(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """List the viewer's conversations, newest first. May be empty."""
    conversations = messaging_service.list_conversations(db=db, viewer_id=viewer.user_id)
    return success_response([c.model_dump(mode="json") for c in conversations])


@router.post("/conversations", status_code=201)
def create_conversation(
    body: CreateConversationRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Start a conversation with another user.

    Errors:
        E_USER_NOT_FOUND (404): No user with target_username.
        E_SELF_CONVERSATION (400): Target is the viewer.
    """
    result = messaging_service.create_conversation(
        db=db,
        viewer_id=viewer.user_id,
        target_username=body.target_username,
        description=body.description,
    )
    return success_response(result.model_dump(mode="json"))


@router.get("/conversations/{conversation_id}")
def get_conversation(
    conversation_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get a conversation by ID.

    Errors:
        E_CONVERSATION_NOT_FOUND (404): Conversation doesn't exist.
        E_FORBIDDEN (403): Viewer is not a participant.
    """
    result = messaging_service.get_conversation(
        db=db, viewer_id=viewer.user_id, conversation_id=conversation_id
    )
    return success_response(result.model_dump(mode="json"))


@router.patch("/conversations/{conversation_id}")
def update_conversation(
    conversation_id: UUID,
    body: UpdateConversationRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Change a conversation's description."""
    result = messaging_service.update_conversation_description(
        db=db,
        viewer_id=viewer.user_id,
        conversation_id=conversation_id,
        description=body.description,
    )
    return success_response(result.model_dump(mode="json"))


@router.delete("/conversations/{conversation_id}", status_code=204)
def delete_conversation(
    conversation_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a conversation. Cascades to its messages and their media."""
    messaging_service.delete_conversation(
        db=db, viewer_id=viewer.user_id, conversation_id=conversation_id
    )
    return Response(status_code=204)


# =============================================================================
# Message Endpoints
# =============================================================================


@router.get("/conversations/{conversation_id}/messages")
def list_messages(
    conversation_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """List messages in a conversation, oldest first."""
    messages = messaging_service.list_messages(
        db=db, viewer_id=viewer.user_id, conversation_id=conversation_id
    )
    return success_response([m.model_dump(mode="json") for m in messages])


@router.post("/conversations/{conversation_id}/messages", status_code=201)
def send_message(
    conversation_id: UUID,
    body: SendMessageRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Send a message.

    Errors:
        E_CONTENT_REQUIRED (400): Neither content nor media_names given.
    """
    result = messaging_service.send_message(
        db=db,
        viewer_id=viewer.user_id,
        conversation_id=conversation_id,
        content=body.content,
        media_names=body.media_names,
    )
    return success_response(result.model_dump(mode="json"))


@router.get("/messages/{message_id}")
def get_message(
    message_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get a message by ID."""
    result = messaging_service.get_message(db=db, viewer_id=viewer.user_id, message_id=message_id)
    return success_response(result.model_dump(mode="json"))


@router.patch("/messages/{message_id}")
def update_message(
    message_id: UUID,
    body: UpdateMessageRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Edit a message."""
    result = messaging_service.update_message(
        db=db,
        viewer_id=viewer.user_id,
        message_id=message_id,
        content=body.content,
        media_names=body.media_names,
    )
    return success_response(result.model_dump(mode="json"))


@router.delete("/messages/{message_id}", status_code=204)
def delete_message(
    message_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a message and its media."""
    messaging_service.delete_message(db=db, viewer_id=viewer.user_id, message_id=message_id)
    return Response(status_code=204)


@router.post("/messages/{message_id}/replies", status_code=201)
def reply_to_message(
    message_id: UUID,
    body: SendMessageRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Reply to a message within its conversation."""
    result = messaging_service.reply_to_message(
        db=db,
        viewer_id=viewer.user_id,
        replied_to_id=message_id,
        content=body.content,
        media_names=body.media_names,
    )
    return success_response(result.model_dump(mode="json"))
