"""Social trading list: search, follow, and AI trader analysis."""

from jobs.models import AsyncJob
from jobs.schemas import TraderProfile
from widgets.base import BaseWidget, error_card

TRADERS = [
    TraderProfile(name="Elena Vasquez", rank="#1", ytd="+142.8%", trades="Bought NVDA, Bought TSM, Sold META"),
    TraderProfile(name="Marcus Chen", rank="#2", ytd="+98.4%", trades="Bought BTC, Bought COIN, Sold ETH"),
    TraderProfile(name="Aisha Okafor", rank="#3", ytd="+76.1%", trades="Bought BRK.B, Bought JNJ, Sold XOM"),
    TraderProfile(name="Liam O'Connor", rank="#4", ytd="+64.9%", trades="Bought TSLA, Bought RIVN, Sold F"),
    TraderProfile(name="Sofia Lindqvist", rank="#5", ytd="+51.3%", trades="Bought GLD, Bought TLT, Sold SPY"),
]

ANALYSIS_PROMPT = """Act as a Senior Investment Analyst for FULXERPRO.
Your task is to provide a brief, professional analysis of a trader based on the following data.
The tone should be insightful, objective, and suitable for a sophisticated investor.

**Trader Data:**
- **Name:** {name}
- **Rank:** {rank}
- **Year-to-Date Performance:** {ytd}
- **Mock Recent Trades:** {trades}

**Analysis Required:**
1.  **Trading Strategy:** Based on their rank, performance, and recent trades, what is their likely trading style? (e.g., Aggressive Growth, Value Investing, Momentum Trading, etc.)
2.  **Risk Profile:** Briefly assess their likely risk profile.
3.  **Key Holdings Insight:** Comment on one or two of their key holdings from the recent trades.

Format the output as clean markdown. Use level-4 headings (####) for each section of the analysis."""


class SocialTradingWidget(BaseWidget):
    name = "social"
    context = "Trader Analysis"
    regions = ("trader-analysis",)

    def __init__(self, orchestrator, reconciler, traders: list[TraderProfile] | None = None):
        super().__init__(orchestrator, reconciler)
        self.traders = list(TRADERS if traders is None else traders)
        self.following: set[str] = set()

    def find(self, name: str) -> TraderProfile | None:
        for trader in self.traders:
            if trader.name.lower() == name.strip().lower():
                return trader
        return None

    def search(self, term: str = "") -> list[dict]:
        """Traders whose name contains ``term`` (case-insensitive)."""
        needle = term.lower().strip()
        return [
            {**trader.model_dump(), "following": trader.name in self.following}
            for trader in self.traders
            if needle in trader.name.lower()
        ]

    def toggle_follow(self, name: str) -> bool:
        """Flip the follow state for a trader; returns the new state."""
        trader = self.find(name)
        if trader is None:
            raise KeyError(name)
        if trader.name in self.following:
            self.following.discard(trader.name)
            return False
        self.following.add(trader.name)
        return True

    async def analyze(self, trader: TraderProfile) -> AsyncJob:
        cancel = self.supersede()
        handle = self.region()
        token = handle.begin("Generating analysis...")
        title = f"AI Trader Analysis: {trader.name}"

        job = await self.orchestrator.submit_single_shot(
            ANALYSIS_PROMPT.format(**trader.model_dump()), context=self.context, cancel=cancel
        )
        if job.ok:
            handle.commit(token, {"title": title, "markdown": job.result.text})
        else:
            handle.fail(token, error_card("Could not generate trader analysis:", job.error))
        return job
