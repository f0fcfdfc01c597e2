"""Dashboard widgets and the registry that wires them to display regions.

The co-pilot is not part of the registry: each chat connection builds its own
with ``CopilotWidget.for_connection``.
"""

from dataclasses import dataclass

from jobs.orchestrator import JobOrchestrator
from jobs.reconciler import ViewStateReconciler
from widgets.allocation import AssetAllocationWidget
from widgets.guide import PlatformGuideWidget
from widgets.insights import StrategicInsightsWidget
from widgets.social import SocialTradingWidget
from widgets.studio import StudioWidget

REGIONS = (
    "insights-panel",
    "guide-content",
    "asset-allocation",
    "trader-analysis",
    "studio-output",
    "studio-edit",
)


@dataclass
class Widgets:
    insights: StrategicInsightsWidget
    guide: PlatformGuideWidget
    allocation: AssetAllocationWidget
    social: SocialTradingWidget
    studio: StudioWidget

    def all(self) -> list:
        return [self.insights, self.guide, self.allocation, self.social, self.studio]


def register_regions(reconciler: ViewStateReconciler) -> None:
    for name in REGIONS:
        reconciler.register(name)


def build_widgets(orchestrator: JobOrchestrator, reconciler: ViewStateReconciler) -> Widgets:
    """Build every widget against ``reconciler``; regions must already be registered."""
    return Widgets(
        insights=StrategicInsightsWidget(orchestrator, reconciler),
        guide=PlatformGuideWidget(orchestrator, reconciler),
        allocation=AssetAllocationWidget(orchestrator, reconciler),
        social=SocialTradingWidget(orchestrator, reconciler),
        studio=StudioWidget(orchestrator, reconciler),
    )
