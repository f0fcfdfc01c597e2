"""AI Co-pilot: streaming multi-turn chat about the platform."""

from collections.abc import AsyncIterator
from contextlib import aclosing

from jobs.models import JobFailure, StreamEvent
from jobs.orchestrator import require_text
from jobs.reconciler import ViewStateReconciler
from widgets.base import BaseWidget, error_card

KNOWLEDGE_BASE = """## HERO SECTION:
FULXERPRO INVESTORS. Elite, AI-driven wealth management for high-net-worth clients.
Institutional-grade strategies, real-time market intelligence and private opportunities.

## FEATURES & DASHBOARD SECTION:
- Portfolio overview with live performance metrics and total portfolio value.
- AI-Powered Strategic Opportunities: next-generation investment themes, grounded in live web research.
- AI Asset Allocation: a diversified allocation generated for the client's risk profile.
- Social Trading: follow top-ranked traders and read AI analysis of their strategies.
- AI Studio: generate financial visualizations, edit them in plain language, and create short videos.
- Secure wallet with one-click address copy, and two-factor authentication on sign-in.

## AWARDS & RECOGNITION SECTION:
Recognized for innovation in AI-driven investment management and client experience.

## INVESTOR TESTIMONIALS SECTION:
Clients highlight the clarity of the dashboard, the quality of AI insights and the responsiveness of the team."""

SYSTEM_PROMPT = f"""You are the FULXERPRO AI Co-pilot, a helpful and knowledgeable assistant for a high-end investment platform.
Your goal is to answer user questions about the platform, its features, and its benefits for investors and clients.
You must be professional, concise, and helpful. Guide users towards signing up or requesting a demo when appropriate.
Use the following information about the FULXERPRO landing page as your primary knowledge base. Do not make up features.

--- START OF KNOWLEDGE BASE ---

{KNOWLEDGE_BASE}

--- END OF KNOWLEDGE BASE ---

Now, begin the conversation by answering the user's questions."""


class CopilotWidget(BaseWidget):
    name = "copilot"
    context = "Co-pilot"
    regions = ("copilot-messages",)

    def __init__(self, orchestrator, reconciler, system_prompt: str = SYSTEM_PROMPT):
        super().__init__(orchestrator, reconciler)
        self.system_prompt = system_prompt
        self.history: list[dict] = []

    @classmethod
    def for_connection(cls, orchestrator, system_prompt: str = SYSTEM_PROMPT) -> "CopilotWidget":
        """A conversation of its own, with a private region, for one chat connection."""
        reconciler = ViewStateReconciler()
        for region in cls.regions:
            reconciler.register(region)
        return cls(orchestrator, reconciler, system_prompt=system_prompt)

    async def send(self, message: str) -> AsyncIterator[StreamEvent]:
        """Send a user message and stream the reply.

        The region shows the conversation with the partial reply after every
        delta. A failed or abandoned turn is removed from the history.
        """
        text = require_text(message, "Please enter a message.")
        cancel = self.supersede()
        handle = self.region()
        token = handle.begin("Thinking...")

        user_turn = {"role": "user", "text": text}
        self.history.append(user_turn)
        partial = ""
        settled = False

        stream = self.orchestrator.submit_streaming(
            list(self.history), self.system_prompt, context=self.context, cancel=cancel
        )
        try:
            async with aclosing(stream):
                async for event in stream:
                    if event.type == "delta":
                        partial += event.text
                        handle.commit(token, self._render(partial, streaming=True))
                    elif event.type == "done":
                        settled = True
                        self.history.append({"role": "model", "text": event.text})
                        handle.commit(token, self._render(None))
                    else:
                        settled = True
                        self._forget(user_turn)
                        handle.fail(token, error_card("Sorry, I couldn't process that request.", event.failure))
                    yield event
        finally:
            if not settled:
                cancel.cancel()
                self._forget(user_turn)
                interrupted = JobFailure("The reply was interrupted before it finished.", category="cancelled")
                handle.fail(token, error_card("Sorry, I couldn't process that request.", interrupted))

    def clear(self) -> None:
        self.cancel_all()
        self.history = []
        self.region().reset()

    def _render(self, partial: str | None, streaming: bool = False) -> dict:
        messages = [dict(turn) for turn in self.history]
        if partial is not None:
            messages.append({"role": "model", "text": partial})
        return {"messages": messages, "streaming": streaming}

    def _forget(self, turn: dict) -> None:
        for index, existing in enumerate(self.history):
            if existing is turn:
                del self.history[index]
                return
