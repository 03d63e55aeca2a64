"""One visualization session: snapshot in, render frames out."""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional

from .config import DEFAULT_CONFIG, LayoutConfig
from .hierarchy import HierarchyBuilder, HierarchyResult
from .index import RecordIndex
from .layout import LayoutEngine, LayoutNode
from .scheduler import ManualScheduler, Scheduler
from .schemas import RenderFrame, coerce_members
from .utils import logger

Listener = Callable[[RenderFrame], None]


class TreeSession:
    """Owns the index, the resolved tree and its layout state.

    Every external mutation of the records should be followed by
    :meth:`rebuild` with the full new snapshot; expansion state is reset on
    each rebuild. Toggles and cascade requests are rejected while a cascade
    is running.
    """

    def __init__(
        self,
        config: LayoutConfig = DEFAULT_CONFIG,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.config = config
        self.scheduler: Scheduler = scheduler or ManualScheduler()
        self.index = RecordIndex([])
        self.result = HierarchyResult(root=None)
        self.engine = LayoutEngine(None, config)
        self.frame = RenderFrame(placeholder="No records loaded")
        self.animating = False
        self._listeners: List[Listener] = []
        self._epoch = 0
        self._sequence = 0

    # -- subscription --------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, origin: Optional[LayoutNode] = None) -> RenderFrame:
        self.engine.layout()
        self._sequence += 1
        self.frame = self.engine.frame(origin=origin, sequence=self._sequence)
        for listener in list(self._listeners):
            listener(self.frame)
        return self.frame

    # -- entry points --------------------------------------------------

    def rebuild(self, records: Iterable[Any]) -> HierarchyResult:
        """Replace the snapshot, re-resolve the tree and reset expansion."""

        members = coerce_members(records)
        self._epoch += 1
        self.animating = False
        self.index = RecordIndex(members)
        self.result = HierarchyBuilder(self.index, max_depth=self.config.max_depth).build()
        self.engine = LayoutEngine(self.result.root, self.config)
        if not self.result.found:
            logger.warning("Tree has no founder; rendering placeholder")
        self._publish()
        return self.result

    def toggle(self, node_id: str) -> bool:
        if self.animating:
            logger.debug("Toggle of %s rejected during cascade", node_id)
            return False
        node = self.engine.node(node_id)
        if node is None or not self.engine.toggle(node_id):
            return False
        self._publish(origin=node)
        return True

    def request_collapse_all(self) -> bool:
        if self.animating or self.engine.root is None:
            return False
        self.engine.collapse_all()
        self._publish(origin=self.engine.root)
        return True

    def set_orientation(self, orientation: str) -> None:
        """Re-render in another orientation, starting from the initial state.

        Like a rebuild, this cancels a running cascade.
        """

        self.config = self.config.with_orientation(orientation)
        self._epoch += 1
        self.animating = False
        self.engine.set_orientation(self.config.orientation)
        self._publish()

    def request_cascade_expand(self) -> bool:
        """Expand one depth level per step until nothing is collapsed."""

        if self.animating or self.engine.root is None:
            return False
        if self.engine.next_collapsed_depth() is None:
            return False
        self.animating = True
        self._cascade_step(self._epoch)
        return True

    def _cascade_step(self, epoch: int) -> None:
        if epoch != self._epoch:
            return
        scheduled = False
        try:
            depth = self.engine.next_collapsed_depth()
            if depth is None:
                return
            count = self.engine.expand_level(depth)
            logger.debug("Cascade expanded %d nodes at depth %d", count, depth)
            self._publish(origin=self.engine.root)
            if self.engine.next_collapsed_depth() is not None:
                self.scheduler.call_later(self.config.cascade_delay, lambda: self._cascade_step(epoch))
                scheduled = True
        finally:
            # Only a pending step keeps the session animating, even when this one failed.
            if not scheduled:
                self.animating = False

    # -- read side -----------------------------------------------------

    @property
    def nodes(self):
        return self.frame.nodes

    @property
    def edges(self):
        return self.frame.edges

    @property
    def viewport(self):
        return self.frame.viewport


__all__ = ["TreeSession", "Listener"]
