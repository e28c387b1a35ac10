"""Conversational assistant request/response models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ChatIntent(str, Enum):
    """Intents in classification order. GENERAL is the catch-all."""
    GREETING = "greeting"
    SPENDING_SUMMARY = "spending_summary"
    BUDGET_HELP = "budget_help"
    UPCOMING_BILLS = "upcoming_bills"
    FINANCIAL_TIPS = "financial_tips"
    GOAL_PROGRESS = "goal_progress"
    TRANSACTION_HELP = "transaction_help"
    GENERAL = "general"


class ChatTurn(BaseModel):
    role: str = Field(..., pattern="^(user|assistant)$")
    message: str = Field(..., max_length=2000)


class ChatRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    message: str = Field(..., min_length=1, max_length=1000)
    conversation_history: list[ChatTurn] = Field(default_factory=list)


class ChatReply(BaseModel):
    message: str
    suggestions: list[str] = Field(default_factory=list)
    intent: ChatIntent = ChatIntent.GENERAL
