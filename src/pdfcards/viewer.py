"""Controllers binding open document views to highlight capture and overlays.

The host viewer owns the page tree; it is reached only through the
``ViewerSurface`` protocol. Each open view gets one ``ViewerController``,
held in a ``ControllerRegistry`` keyed by the view's id and removed
explicitly when the view closes.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from .exceptions import CaptureError
from .geometry import ClientRect, Overlay, PageBox, build_highlight, overlays_for_pages
from .models import HIGHLIGHT_COLORS, Highlight, Notice
from .storage import Store

logger = logging.getLogger(__name__)

RENDER_DEBOUNCE_SECONDS = 0.15
ATTACH_RETRY_SECONDS = 0.25
ATTACH_MAX_RETRIES = 5


@dataclass
class Selection:
    """The viewer's current text selection in client space."""

    text: str
    rects: list[ClientRect] = field(default_factory=list)


class ViewerSurface(Protocol):
    """What the host document viewer exposes to the core."""

    view_id: str

    def source_path(self) -> Optional[str]:
        """Path of the open document, or None."""
        ...

    def is_mounted(self) -> bool:
        """Whether the page container has been rendered yet."""
        ...

    def selection(self) -> Optional[Selection]:
        """Current non-empty selection, or None."""
        ...

    def mounted_pages(self) -> list[PageBox]:
        ...

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Call ``callback`` whenever the mounted page set changes.

        Returns a function that cancels the subscription.
        """
        ...

    def draw_overlays(self, overlays: list[Overlay]) -> None:
        """Replace every drawn overlay with ``overlays``."""
        ...

    def clear_selection(self) -> None:
        ...


class ViewerController:
    """Highlight capture and overlay reconciliation for one open view."""

    def __init__(
        self,
        store: Store,
        surface: ViewerSurface,
        debounce: float = RENDER_DEBOUNCE_SECONDS,
        retry_delay: float = ATTACH_RETRY_SECONDS,
        max_retries: int = ATTACH_MAX_RETRIES,
    ):
        self._store = store
        self.surface = surface
        self._debounce = debounce
        self._retry_delay = retry_delay
        self._max_retries = max_retries
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._render_timer: Optional[asyncio.TimerHandle] = None
        self._retry_timer: Optional[asyncio.TimerHandle] = None
        self._tasks: set[asyncio.Task] = set()
        self.attached = False

    @property
    def view_id(self) -> str:
        return self.surface.view_id

    async def ensure_attached(self, retries: Optional[int] = None) -> bool:
        """Subscribe to page changes, retrying while the viewer is still mounting."""
        retries = self._max_retries if retries is None else retries
        if not self.surface.is_mounted():
            if retries > 0:
                logger.debug(f"Viewer {self.view_id} not mounted, {retries} retries left")
                self._cancel_retry()
                self._retry_timer = asyncio.get_running_loop().call_later(
                    self._retry_delay,
                    self._spawn,
                    lambda: self.ensure_attached(retries - 1),
                )
            else:
                logger.warning(f"Gave up attaching to viewer {self.view_id}")
            return False

        if self._unsubscribe is None:
            self._unsubscribe = self.surface.subscribe(self.schedule_render)
        self.attached = True
        self.schedule_render()
        return True

    def schedule_render(self) -> None:
        """Debounce overlay reconciliation after a burst of page changes."""
        if self._render_timer is not None:
            self._render_timer.cancel()
        self._render_timer = asyncio.get_running_loop().call_later(
            self._debounce, self._spawn, self.render_overlays
        )

    def _spawn(self, factory: Callable) -> None:
        task = asyncio.get_running_loop().create_task(factory())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def apply_overlays(self, pages: list[PageBox]) -> list[Overlay]:
        """Overlays for the stored highlights on ``pages``."""
        source_path = self.surface.source_path()
        if not source_path:
            return []
        highlights = await self._store.load_highlights(source_path)
        return overlays_for_pages(highlights, pages)

    async def render_overlays(self) -> list[Overlay]:
        if not self.surface.is_mounted():
            return []
        overlays = await self.apply_overlays(self.surface.mounted_pages())
        self.surface.draw_overlays(overlays)
        return overlays

    def build_from_selection(self, color: str) -> Highlight:
        """Capture the current selection, raising CaptureError with a user message."""
        if color not in HIGHLIGHT_COLORS:
            raise CaptureError(f"Unknown highlight color: {color}")
        selection = self.surface.selection()
        if selection is None or not selection.rects:
            raise CaptureError("Select text in the PDF first.")
        if not self.surface.is_mounted():
            raise CaptureError("PDF viewer not found.")
        highlight = build_highlight(
            selection.rects, self.surface.mounted_pages(), color, selection.text
        )
        if highlight is None:
            raise CaptureError("Could not capture selection.")
        return highlight

    async def capture(self, color: str) -> Notice:
        """Save the current selection as a highlight of ``color``."""
        try:
            highlight = self.build_from_selection(color)
        except CaptureError as e:
            return Notice.nothing(str(e))

        source_path = self.surface.source_path()
        if not source_path:
            return Notice.nothing("No PDF file associated with this view.")

        await self._store.append_highlight(source_path, highlight)
        self.surface.clear_selection()
        await self.render_overlays()
        return Notice.confirm(f"Saved {color} highlight.")

    def _cancel_retry(self) -> None:
        if self._retry_timer is not None:
            self._retry_timer.cancel()
            self._retry_timer = None

    def destroy(self) -> None:
        self._cancel_retry()
        if self._render_timer is not None:
            self._render_timer.cancel()
            self._render_timer = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in list(self._tasks):
            task.cancel()
        self.attached = False


class ControllerRegistry:
    """One controller per open view, keyed by the view's id."""

    def __init__(self, store: Store, **controller_options):
        self._store = store
        self._options = controller_options
        self._controllers: dict[str, ViewerController] = {}

    def __len__(self) -> int:
        return len(self._controllers)

    def __contains__(self, view_id: str) -> bool:
        return view_id in self._controllers

    def get(self, view_id: str) -> Optional[ViewerController]:
        return self._controllers.get(view_id)

    async def attach(self, surface: ViewerSurface) -> ViewerController:
        """Attach to a view, reusing its controller if one already exists."""
        controller = self._controllers.get(surface.view_id)
        if controller is None:
            controller = ViewerController(self._store, surface, **self._options)
            self._controllers[surface.view_id] = controller
        await controller.ensure_attached()
        return controller

    def remove(self, view_id: str) -> None:
        controller = self._controllers.pop(view_id, None)
        if controller is not None:
            controller.destroy()

    def clear(self) -> None:
        for view_id in list(self._controllers):
            self.remove(view_id)
