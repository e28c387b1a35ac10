"""Conversational assistant endpoint."""

from fastapi import APIRouter, Depends

from finance_tracker.api.deps import envelope, get_components, get_current_user
from finance_tracker.models.chat import ChatRequest
from finance_tracker.models.user import User
from finance_tracker.orchestrator import AppComponents


router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/message")
async def send_message(
    data: ChatRequest,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    reply = await components.assistant.reply(user.id, user.name or "there", data)
    return envelope("Response generated successfully", reply)
