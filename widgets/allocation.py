"""AI Asset Allocation grid backed by structured output."""

from jobs.models import AsyncJob
from jobs.orchestrator import require_text
from jobs.schemas import AllocationPlan
from widgets.base import BaseWidget, error_card

COLORS = ["#007aff", "#34c759", "#ff9500", "#ff3b30", "#af52de", "#5856d6", "#5ac8fa"]

ALLOCATION_PROMPT = """Based on a high-net-worth individual's portfolio valued at approximately {portfolio_value}, generate a plausible and diversified asset allocation strategy suitable for a '{risk_profile}' risk profile.
Provide 5 to 7 allocation categories.
The total percentages should sum up to exactly 100.
Return the data according to the provided JSON schema."""


class AssetAllocationWidget(BaseWidget):
    name = "allocation"
    context = "Asset Allocation"
    regions = ("asset-allocation",)

    async def refresh(
        self,
        portfolio_value: str = "$12M",
        risk_profile: str = "Nexus Growth (accelerated, diversified returns)",
    ) -> AsyncJob:
        portfolio_value = require_text(portfolio_value, "Portfolio value is required.")
        cancel = self.supersede()
        handle = self.region()
        token = handle.begin("Generating AI allocation...")

        prompt = ALLOCATION_PROMPT.format(portfolio_value=portfolio_value, risk_profile=risk_profile)
        job = await self.orchestrator.submit_single_shot(
            prompt, schema=AllocationPlan, context=self.context, cancel=cancel
        )
        if job.ok:
            handle.commit(token, {"allocations": self.rows(job.result)})
        else:
            handle.fail(token, error_card("Could not load allocation data.", job.error))
        return job

    @staticmethod
    def rows(plan: AllocationPlan) -> list[dict]:
        return [
            {
                "category": item.category,
                "percentage": item.percentage,
                "color": COLORS[index % len(COLORS)],
            }
            for index, item in enumerate(plan.allocations)
        ]
