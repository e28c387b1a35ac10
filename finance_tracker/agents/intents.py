"""
Keyword intent classification for chat messages.

Intents are checked in `ChatIntent` order and the first one with a
matching keyword wins. Keywords match whole words (an optional plural
"s" is allowed), so "hi" does not fire inside "this".
"""

import re

from finance_tracker.models.chat import ChatIntent


INTENT_KEYWORDS: dict[ChatIntent, list[str]] = {
    ChatIntent.GREETING: [
        "hi", "hello", "hey", "good morning", "good afternoon", "good evening",
    ],
    ChatIntent.SPENDING_SUMMARY: [
        "spending", "expense", "spent", "summary", "breakdown", "category", "categories",
    ],
    ChatIntent.BUDGET_HELP: [
        "budget", "budgeting", "save money", "reduce expenses", "cut costs",
    ],
    ChatIntent.UPCOMING_BILLS: [
        "bill", "payment", "due", "upcoming", "overdue", "reminder",
    ],
    ChatIntent.FINANCIAL_TIPS: [
        "tip", "advice", "help", "suggestion", "recommend", "how to",
    ],
    ChatIntent.GOAL_PROGRESS: [
        "goal", "savings", "target", "progress", "achievement",
    ],
    ChatIntent.TRANSACTION_HELP: [
        "transaction", "add expense", "add income", "record", "track",
    ],
}

SUGGESTIONS: dict[ChatIntent, list[str]] = {
    ChatIntent.GREETING: [
        "Show my spending summary",
        "Help with budgeting",
        "Financial tips",
    ],
    ChatIntent.SPENDING_SUMMARY: [
        "Show me my top spending categories",
        "How can I reduce my expenses?",
        "Compare this month to last month",
    ],
    ChatIntent.BUDGET_HELP: [
        "Create a budget for food",
        "Show my budget status",
        "Tips for staying within budget",
    ],
    ChatIntent.UPCOMING_BILLS: [
        "Mark a bill as paid",
        "Add a new bill reminder",
        "Show overdue bills",
    ],
    ChatIntent.FINANCIAL_TIPS: [
        "Saving strategies",
        "Investment basics",
        "Debt management tips",
    ],
    ChatIntent.GOAL_PROGRESS: [
        "Create a new goal",
        "How to reach goals faster",
        "Update goal progress",
    ],
    ChatIntent.TRANSACTION_HELP: [
        "Add an expense",
        "Add income",
        "View recent transactions",
    ],
    ChatIntent.GENERAL: [
        "Show my financial overview",
        "Budget recommendations",
        "Savings tips",
    ],
}

FALLBACK_MESSAGE = (
    "I'm having trouble processing that right now. "
    "Could you try rephrasing your question?"
)
FALLBACK_SUGGESTIONS = ["Show my spending", "Budget help", "Financial tips"]


def _compile(keyword: str) -> re.Pattern:
    words = r"\s+".join(re.escape(word) for word in keyword.split())
    return re.compile(rf"\b{words}s?\b", re.IGNORECASE)


_PATTERNS: dict[ChatIntent, list[re.Pattern]] = {
    intent: [_compile(keyword) for keyword in keywords]
    for intent, keywords in INTENT_KEYWORDS.items()
}


def classify_intent(message: str) -> ChatIntent:
    """First intent, in declaration order, with a keyword in `message`."""
    for intent, patterns in _PATTERNS.items():
        if any(pattern.search(message) for pattern in patterns):
            return intent
    return ChatIntent.GENERAL
