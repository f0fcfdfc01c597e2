import logging

from jobs.models import CancelToken, JobFailure
from jobs.orchestrator import JobOrchestrator
from jobs.reconciler import RegionHandle, ViewStateReconciler


def error_card(headline: str, failure: JobFailure | None) -> str:
    """Human-readable markdown shown in a region when its job fails."""
    detail = failure.message if failure else "An unknown error occurred."
    return f"**{headline}**\n\n{detail}"


class BaseWidget:
    """A dashboard widget bound to one or more display regions.

    Regions are resolved when the widget is built, so a missing region fails at
    startup instead of on the first request. Each new job on a region cancels
    the job it supersedes.
    """

    name = "widget"
    context = "Widget"  # label used for error log entries
    regions: tuple[str, ...] = ()

    def __init__(self, orchestrator: JobOrchestrator, reconciler: ViewStateReconciler):
        self.orchestrator = orchestrator
        self.reconciler = reconciler
        self.logger = logging.getLogger(f"widget.{self.name}")
        self._handles: dict[str, RegionHandle] = {
            region: reconciler.region(region) for region in self.regions
        }
        self._cancels: dict[str, CancelToken] = {}

    def region(self, name: str | None = None) -> RegionHandle:
        return self._handles[name or self.regions[0]]

    def supersede(self, region: str | None = None) -> CancelToken:
        """Cancel the job currently running on ``region`` and return a fresh token for the next one."""
        key = region or self.regions[0]
        previous = self._cancels.get(key)
        if previous is not None and not previous.cancelled:
            self.logger.debug("Superseding running job on %s", key)
            previous.cancel()
        token = CancelToken()
        self._cancels[key] = token
        return token

    def cancel_all(self) -> None:
        for token in self._cancels.values():
            token.cancel()
        self._cancels.clear()

    def snapshot(self) -> dict:
        return {name: handle.snapshot().to_dict() for name, handle in self._handles.items()}
