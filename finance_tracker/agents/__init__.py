"""Conversational assistants package."""

from finance_tracker.agents.ai_agents import (
    Assistant,
    GeminiAssistant,
    RuleBasedAssistant,
    fallback_reply,
)
from finance_tracker.agents.intents import classify_intent

__all__ = [
    "Assistant",
    "GeminiAssistant",
    "RuleBasedAssistant",
    "classify_intent",
    "fallback_reply",
]
