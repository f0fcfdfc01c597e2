"""AI-Powered Strategic Opportunities panel."""

from jobs.models import AsyncJob
from widgets.base import BaseWidget, error_card

INSIGHTS_PROMPT = """Act as the Chief Investment Officer for FULXERPRO, an elite, futuristic investment firm. Your task is to generate compelling content for a client's "AI-Powered Strategic Opportunities" dashboard widget.

Analyze the current global financial market using your real-time web search capabilities.

Based on your analysis, identify and describe **three exclusive, next-generation investment opportunities** we are currently exploring. These should sound cutting-edge, proprietary, and highly desirable to sophisticated investors.

For each opportunity, provide:
1. A compelling name (as a bolded list item).
2. A brief, powerful one-sentence description of the opportunity.

Format the output as a clean markdown list."""


class StrategicInsightsWidget(BaseWidget):
    name = "insights"
    context = "AI Insights"
    regions = ("insights-panel",)

    async def refresh(self) -> AsyncJob:
        cancel = self.supersede()
        handle = self.region()
        token = handle.begin("Initializing AI analysis...")

        job = await self.orchestrator.submit_single_shot(
            INSIGHTS_PROMPT, use_search=True, context=self.context, cancel=cancel
        )
        if job.ok:
            handle.commit(token, {"markdown": job.result.text, "sources": job.result.sources})
        else:
            handle.fail(token, error_card("There was an issue generating strategic insights:", job.error))
        return job
