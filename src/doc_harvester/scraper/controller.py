"""
Control surface for embedding applications.

Start requests are acknowledged immediately; the scrape itself runs as a
background task and reports through the orchestrator's progress channel.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from doc_harvester.config.settings import ScrapeOptions
from doc_harvester.core.exceptions import SessionAlreadyActive
from doc_harvester.core.types import ScrapeDocument
from doc_harvester.scraper.orchestrator import ScrapeOrchestrator
from doc_harvester.scraper.session import ScrapeSession
from doc_harvester.utils.logging import get_logger

logger = get_logger(__name__)


Options = ScrapeOptions | dict[str, Any] | None
Runner = Callable[[ScrapeSession, Options], Awaitable[ScrapeDocument | None]]


@dataclass
class ControlAck:
    """Immediate acknowledgement of a control request."""

    success: bool = True
    ready: bool = False
    stopped: bool = False
    status: str | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        if self.ready:
            data["ready"] = True
        if self.stopped:
            data["stopped"] = True
        if self.status is not None:
            data["status"] = self.status
        if self.message is not None:
            data["message"] = self.message
        return data


class ScrapeController:
    """
    Start, stop and ping a scrape on one page.

    Example:
        >>> controller = ScrapeController(ScrapeOrchestrator(env, settings))
        >>> ack = await controller.start_comprehensive({"include_links": False})
        >>> document = await controller.wait()
    """

    def __init__(self, orchestrator: ScrapeOrchestrator) -> None:
        self.orchestrator = orchestrator
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, options: Options = None) -> ControlAck:
        """Extract the current page in the background."""
        return await self._launch(self.orchestrator.run_single_page, options)

    async def start_comprehensive(self, options: Options = None) -> ControlAck:
        """Discover and scrape the whole site in the background."""
        return await self._launch(self.orchestrator.run_comprehensive, options)

    async def _launch(self, runner: Runner, options: Options) -> ControlAck:
        target = await self.orchestrator.env.location()
        try:
            session = self.orchestrator.open_session(target)
        except SessionAlreadyActive as e:
            logger.warning(f"Start ignored: {e}")
            return ControlAck(status=e.status, message=e.message)

        self._task = asyncio.create_task(runner(session, options))
        return ControlAck(status=session.status.value)

    def stop(self) -> ControlAck:
        """Request a cooperative stop; captured pages are still delivered."""
        stopped = self.orchestrator.request_stop()
        session = self.orchestrator.session
        return ControlAck(
            stopped=stopped,
            status=session.status.value if session is not None else None,
        )

    def ping(self) -> ControlAck:
        return ControlAck(ready=True)

    async def wait(self) -> ScrapeDocument | None:
        """Wait for the background scrape and return its document."""
        if self._task is None:
            return None
        return await self._task
