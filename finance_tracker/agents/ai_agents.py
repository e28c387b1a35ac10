"""
Conversational assistants for the finance tracker

DESIGN DECISION: The assistant is read-only. It answers FROM the user's
own data and never writes anything.

Two interchangeable implementations share one interface, `reply()`:

1. RULE-BASED ASSISTANT:
   - Keyword intent classification (see `intents.py`)
   - One template per intent, filled from tracker and ledger reads

2. GEMINI ASSISTANT:
   - Serializes recent transactions, budgets, goals and bills into a
     context block and asks Gemini to answer from it
   - On any upstream failure returns a fixed apology; the error is
     audited and never reaches the caller

The LLM is a FORMATTER, not an ORACLE. It only sees what the context
block gives it.
"""

import asyncio
import random
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional
from uuid import UUID

import google.generativeai as genai
import structlog
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_tracker.agents.intents import (
    FALLBACK_MESSAGE,
    FALLBACK_SUGGESTIONS,
    SUGGESTIONS,
    classify_intent,
)
from finance_tracker.audit import AuditLogger
from finance_tracker.config import GeminiSettings, get_settings
from finance_tracker.errors import UpstreamFailureError
from finance_tracker.models.budget import BudgetStatus, BudgetWithSpending
from finance_tracker.models.chat import ChatIntent, ChatReply, ChatRequest
from finance_tracker.models.common import first_day_of_month
from finance_tracker.models.goal import GoalStatus
from finance_tracker.trackers import BillTracker, BudgetTracker, GoalTracker, TransactionLedger


logger = structlog.get_logger()

UPCOMING_WINDOW_DAYS = 30

FINANCIAL_TIPS = [
    ("The 50/30/20 Rule",
     "Allocate 50% of income to needs, 30% to wants, and 20% to savings and debt repayment."),
    ("Emergency Fund Priority",
     "Build an emergency fund of 3-6 months of expenses before focusing on other goals."),
    ("Automate Savings",
     "Set up automatic transfers to savings accounts right after payday. Pay yourself first!"),
    ("Track Every Expense",
     "Small purchases add up! Track everything for at least a month to identify spending patterns."),
    ("Review Monthly",
     "Spend 30 minutes each month reviewing your finances and adjusting budgets as needed."),
]

GREETINGS = [
    "Hello {name}! 👋 How can I help you manage your finances today?",
    "Hi {name}! 😊 Ready to tackle your financial goals?",
    "Hey {name}! 💰 What would you like to know about your finances?",
    "Welcome back {name}! 🎯 How can I assist you today?",
]


def money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def fallback_reply() -> ChatReply:
    return ChatReply(
        message=FALLBACK_MESSAGE,
        suggestions=list(FALLBACK_SUGGESTIONS),
        intent=ChatIntent.GENERAL,
    )


class Assistant(ABC):
    """Common surface of both assistants."""

    name: str = "assistant"

    def __init__(
        self,
        ledger: TransactionLedger,
        budgets: BudgetTracker,
        goals: GoalTracker,
        bills: BillTracker,
        audit_logger: Optional[AuditLogger] = None,
        today: Callable[[], date] = date.today,
    ):
        self._ledger = ledger
        self._budgets = budgets
        self._goals = goals
        self._bills = bills
        self._audit = audit_logger or AuditLogger()
        self._today = today

    @abstractmethod
    async def _answer(
        self,
        user_id: UUID,
        user_name: str,
        request: ChatRequest,
        intent: ChatIntent,
    ) -> str:
        """Produce the reply text for a classified message."""

    async def reply(self, user_id: UUID, user_name: str, request: ChatRequest) -> ChatReply:
        """
        Answer one chat message.

        Never raises for data or upstream problems; those produce the
        fixed fallback reply instead.
        """
        intent = classify_intent(request.message)
        try:
            text = await self._answer(user_id, user_name, request, intent)
        except Exception as e:
            logger.error(
                "assistant_failed",
                assistant=self.name,
                intent=intent.value,
                user_id=str(user_id),
                error=str(e),
            )
            await self._audit.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"assistant": self.name, "intent": intent.value},
                user_id=user_id,
            )
            return fallback_reply()

        await self._audit.log_chat_answered(user_id, intent=intent.value, assistant=self.name)
        return ChatReply(message=text, suggestions=list(SUGGESTIONS[intent]), intent=intent)


class RuleBasedAssistant(Assistant):
    """Template responses keyed by intent."""

    name = "rules"

    def __init__(self, *args, rng: Optional[random.Random] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._random = rng or random.Random()

    async def _answer(
        self,
        user_id: UUID,
        user_name: str,
        request: ChatRequest,
        intent: ChatIntent,
    ) -> str:
        if intent == ChatIntent.GREETING:
            return self._random.choice(GREETINGS).format(name=user_name)
        if intent == ChatIntent.SPENDING_SUMMARY:
            return await self._spending_summary(user_id)
        if intent == ChatIntent.BUDGET_HELP:
            return await self._budget_status(user_id)
        if intent == ChatIntent.UPCOMING_BILLS:
            return await self._bills_overview(user_id)
        if intent == ChatIntent.FINANCIAL_TIPS:
            return self._financial_tip()
        if intent == ChatIntent.GOAL_PROGRESS:
            return await self._goal_progress(user_id)
        if intent == ChatIntent.TRANSACTION_HELP:
            return self._transaction_help()
        return self._general()

    async def _spending_summary(self, user_id: UUID) -> str:
        today = self._today()
        start = first_day_of_month(today)
        totals, categories = await asyncio.gather(
            self._ledger.totals(user_id, start, today),
            self._ledger.expenses_by_category(user_id, start, today),
        )
        spent = totals.total_expenses
        if spent == 0:
            return (
                "You haven't recorded any expenses this month yet. "
                "Start tracking your spending to get personalized insights!"
            )

        lines = [
            f"📊 **Your Spending Summary for {start.strftime('%B')}**",
            "",
            f"Total Spent: {money(spent)}",
        ]
        if categories:
            lines += ["", "**Top Spending Categories:**"]
            for position, category in enumerate(categories[:5], start=1):
                share = category.total / spent * 100
                lines.append(
                    f"{position}. {category.category.title()}: "
                    f"{money(category.total)} ({share:.1f}%)"
                )
            top = categories[0]
            lines += [
                "",
                f"💡 **Insight:** Most of your spending ({top.total / spent * 100:.1f}%) "
                f"is in {top.category}. Consider setting a budget for this category!",
            ]
        return "\n".join(lines)

    @staticmethod
    def _budget_lines(budgets: list[BudgetWithSpending]) -> list[str]:
        return [
            f"• {b.category.value}: {money(b.spent)} / {money(b.amount)} ({b.percentage:.0f}%)"
            for b in budgets
        ]

    async def _budget_status(self, user_id: UUID) -> str:
        budgets = await self._budgets.list_with_spending(user_id, active_only=True)
        if not budgets:
            return "\n".join([
                "🎯 **Budget Recommendations**",
                "",
                "You haven't set any budgets yet! Here's how to start:",
                "",
                "1. **50/30/20 Rule:** Allocate 50% for needs, 30% for wants, 20% for savings",
                "2. **Start Small:** Begin with your top 3 spending categories",
                "3. **Track & Adjust:** Monitor weekly and adjust as needed",
                "",
                "Would you like me to help you create your first budget?",
            ])

        exceeded = [b for b in budgets if b.status == BudgetStatus.EXCEEDED]
        warning = [b for b in budgets if b.status in (BudgetStatus.WARNING, BudgetStatus.DANGER)]
        good = [b for b in budgets if b.status == BudgetStatus.GOOD]

        lines = ["🎯 **Your Budget Status**", ""]
        if exceeded:
            lines.append(f"⚠️ **Over Budget ({len(exceeded)}):**")
            lines += self._budget_lines(exceeded) + [""]
        if warning:
            lines.append(f"🟡 **Warning ({len(warning)}):**")
            lines += self._budget_lines(warning) + [""]
        if good:
            lines.append(f"✅ **On Track ({len(good)}):**")
            lines += self._budget_lines(good[:3]) + [""]

        if exceeded:
            tip = (
                "Review your spending in over-budget categories and consider "
                "adjusting your budget or reducing expenses."
            )
        else:
            tip = "Great job staying within your budgets! Keep up the good work!"
        lines.append(f"💡 **Tip:** {tip}")
        return "\n".join(lines)

    async def _bills_overview(self, user_id: UUID) -> str:
        today = self._today()
        upcoming, overdue = await asyncio.gather(
            self._bills.upcoming(user_id, UPCOMING_WINDOW_DAYS),
            self._bills.overdue(user_id),
        )
        if not upcoming and not overdue:
            return "\n".join([
                "🔔 **Bill Reminders**",
                "",
                "You don't have any bills due soon. Add your recurring bills to get "
                "reminders and never miss a payment!",
                "",
                "Common bills to track:",
                "• Rent/Mortgage",
                "• Utilities (Electric, Water, Gas)",
                "• Internet & Phone",
                "• Subscriptions",
                "• Insurance",
            ])

        lines = ["🔔 **Your Bills Overview**", ""]
        if overdue:
            lines.append(f"⚠️ **Overdue Bills ({len(overdue)}):**")
            for bill in overdue:
                lines.append(
                    f"• {bill.name}: {money(bill.amount)} "
                    f"({-bill.days_until(today)} days overdue)"
                )
            lines.append("")
        if upcoming:
            lines.append(f"📅 **Upcoming Bills (Next {UPCOMING_WINDOW_DAYS} Days):**")
            for bill in upcoming[:5]:
                lines.append(
                    f"• {bill.name}: {money(bill.amount)} (Due in {bill.days_until(today)} days)"
                )
            lines += ["", f"**Total Upcoming:** {money(BillTracker.total_amount(upcoming))}"]
        return "\n".join(lines)

    async def _goal_progress(self, user_id: UUID) -> str:
        goals = await self._goals.list_goals(user_id, status=GoalStatus.ACTIVE)
        if not goals:
            return "\n".join([
                "🎯 **Goal Setting Guide**",
                "",
                "You haven't set any financial goals yet. Here's how to start:",
                "",
                "**Popular Goals:**",
                "• Emergency Fund (3-6 months expenses)",
                "• Vacation Fund",
                "• Home Down Payment",
                "• Debt Payoff",
                "• Retirement Savings",
                "",
                "💡 **Tip:** Start with one specific, measurable goal and set a realistic deadline!",
            ])

        today = self._today()
        lines = ["🎯 **Your Active Goals**", ""]
        for position, goal in enumerate(goals, start=1):
            lines += [
                f"{position}. **{goal.name}**",
                f"   Progress: {money(goal.current_amount)} / {money(goal.target_amount)} "
                f"({goal.progress_percentage:.1f}%)",
                f"   Remaining: {money(goal.remaining_amount)}",
            ]
            days_left = goal.days_remaining(today)
            if days_left is not None:
                lines.append(f"   Deadline: {days_left} days remaining")
            lines.append("")
        lines.append("💡 **Tip:** Set up automatic transfers to reach your goals faster!")
        return "\n".join(lines)

    def _financial_tip(self) -> str:
        title, content = self._random.choice(FINANCIAL_TIPS)
        return (
            f"💡 **Financial Tip: {title}**\n\n{content}\n\n"
            "Want more personalized advice? Ask me about your spending, budgets, or goals!"
        )

    @staticmethod
    def _transaction_help() -> str:
        return "\n".join([
            "💰 **Transaction Tracking Guide**",
            "",
            "**To Add an Expense:**",
            "1. Go to the Transactions page",
            '2. Click "Add Transaction"',
            '3. Select "Expense" type',
            "4. Enter amount and category",
            "5. Add optional description",
            "",
            "**Pro Tips:**",
            "• Add transactions immediately to never forget",
            "• Use specific categories for better insights",
            "• Include notes for large purchases",
            "• Review weekly to spot patterns",
        ])

    @staticmethod
    def _general() -> str:
        return "\n".join([
            "I'm here to help you with:",
            "",
            "📊 Spending analysis and summaries",
            "🎯 Budget creation and tracking",
            "💰 Goal setting and progress",
            "🔔 Bill reminders and payments",
            "💡 Financial tips and advice",
            "",
            "What would you like to know more about?",
        ])


class GeminiAssistant(Assistant):
    """
    Answers with Gemini from a serialized snapshot of the user's data.

    BOUNDARIES:
    - The prompt carries only the user's own records
    - The model is told to say so when the data doesn't answer the question
    - Upstream failures become the fixed fallback reply
    """

    name = "gemini"

    def __init__(
        self,
        *args,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self._settings = settings or get_settings().gemini
        self._model = model or self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    async def build_context(self, user_id: UUID) -> str:
        """Plain-text snapshot of recent activity, budgets, goals and bills."""
        today = self._today()
        transactions, budgets, goals, bills = await asyncio.gather(
            self._ledger.recent(user_id, limit=self._settings.context_transactions),
            self._budgets.list_with_spending(user_id, active_only=True),
            self._goals.list_goals(user_id, status=GoalStatus.ACTIVE),
            self._bills.upcoming(user_id, UPCOMING_WINDOW_DAYS),
        )

        sections = [f"Today: {today.isoformat()}", "", "Recent transactions:"]
        sections += [
            f"- {t.date.isoformat()} {t.kind.value} {money(t.amount)} {t.category}"
            + (f" ({t.description})" if t.description else "")
            for t in transactions
        ] or ["- none"]

        sections += ["", "Active budgets:"]
        sections += [
            f"- {b.category.value} ({b.period.value}): spent {money(b.spent)} of "
            f"{money(b.amount)}, {b.percentage:.0f}%, status {b.status.value}"
            for b in budgets
        ] or ["- none"]

        sections += ["", "Active goals:"]
        sections += [
            f"- {g.name}: {money(g.current_amount)} of {money(g.target_amount)} "
            f"({g.progress_percentage:.0f}%)"
            + (f", deadline {g.deadline.isoformat()}" if g.deadline else "")
            for g in goals
        ] or ["- none"]

        sections += ["", f"Bills due in the next {UPCOMING_WINDOW_DAYS} days:"]
        sections += [
            f"- {b.name}: {money(b.amount)} due {b.due_date.isoformat()}"
            for b in bills
        ] or ["- none"]

        return "\n".join(sections)

    def _build_prompt(self, context: str, user_name: str, request: ChatRequest) -> str:
        history = "\n".join(
            f"{turn.role}: {turn.message}" for turn in request.conversation_history[-10:]
        )
        return f"""You are a friendly personal finance assistant talking to {user_name}.

Answer ONLY from the financial data below. If the data does not answer
the question, say so plainly. Never invent numbers. Keep the answer
short and use markdown bullet points where they help.

Financial data:
{context}

Conversation so far:
{history or "(none)"}

User: {request.message}
Assistant:"""

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _generate(self, prompt: str) -> str:
        response = await self._model.generate_content_async(prompt)
        text = (response.text or "").strip()
        if not text:
            raise UpstreamFailureError("Gemini returned an empty response")
        return text

    async def _answer(
        self,
        user_id: UUID,
        user_name: str,
        request: ChatRequest,
        intent: ChatIntent,
    ) -> str:
        context = await self.build_context(user_id)
        prompt = self._build_prompt(context, user_name, request)
        try:
            return await self._generate(prompt)
        except Exception as e:
            await self._audit.log_external_service_error(
                service="gemini",
                error_message=str(e),
                user_id=user_id,
            )
            raise UpstreamFailureError(f"Gemini request failed: {e}") from e
