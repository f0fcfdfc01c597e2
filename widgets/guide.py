"""Platform Features Guide, generated once per session."""

from jobs.models import AsyncJob
from jobs.reconciler import RenderState
from widgets.base import BaseWidget, error_card

DASHBOARD_CONTEXT = """Portfolio Overview: total portfolio value, year-to-date return, risk profile (Nexus Growth).
AI-Powered Strategic Opportunities: three next-generation investment themes with cited web sources.
AI Asset Allocation: five to seven categories with percentages that sum to 100.
Social Trading: ranked traders with year-to-date performance, follow buttons, search and AI trader analysis.
AI Studio: image generation (1:1, 16:9, 9:16), natural-language image edits, and video generation from a prompt and optional image.
Wallet: deposit address with copy button.
Admin: error log of every failed AI request, with a clear button."""

GUIDE_PROMPT = f"""Act as a senior technical writer for FULXERPRO, an elite investment platform. Your task is to create a comprehensive "Platform Features Guide" for new clients. This guide will be displayed on a dedicated page within the client dashboard.

The guide should be structured logically, explaining each major feature of the platform. Use the context provided below from the live dashboard to inform your writing. The tone should be professional, confident, and highlight the value and sophistication of each tool.

For each feature, provide a clear heading and a detailed paragraph explaining its purpose, what the user can see, and how it benefits them.

Format the output as clean markdown. Use level-3 headings (###) for each feature.

---
DASHBOARD CONTEXT:
{DASHBOARD_CONTEXT}
---"""


class PlatformGuideWidget(BaseWidget):
    name = "guide"
    context = "Platform Guide"
    regions = ("guide-content",)

    async def load(self, force: bool = False) -> AsyncJob | None:
        """Generate the guide unless it is already loaded or loading.

        Returns None when nothing was started.
        """
        handle = self.region()
        if not force and handle.snapshot().state in (RenderState.LOADING, RenderState.CONTENT):
            return None

        cancel = self.supersede()
        token = handle.begin("Generating Platform Guide...")
        job = await self.orchestrator.submit_single_shot(GUIDE_PROMPT, context=self.context, cancel=cancel)
        if job.ok:
            handle.commit(token, {"markdown": job.result.text})
        else:
            handle.fail(token, error_card("There was an issue generating the platform guide:", job.error))
        return job
