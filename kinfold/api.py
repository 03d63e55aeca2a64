"""High-level API helpers for kinfold."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from .branches import group_by_branch
from .config import DEFAULT_CONFIG, LayoutConfig
from .export import export_layout
from .scheduler import ManualScheduler
from .schemas import Member, RenderFrame
from .session import TreeSession
from .utils import console


def run_layout(
    *,
    members: Iterable[Member],
    out_dir: str,
    expand_all: bool = False,
    config: LayoutConfig = DEFAULT_CONFIG,
    labels: Optional[Mapping[int, str]] = None,
) -> RenderFrame:
    """End-to-end helper that mirrors ``kinfold layout``.

    With ``expand_all`` the cascade is run to completion on the session's
    manual scheduler, so the exported frame is the fully expanded tree.
    """

    scheduler = ManualScheduler()
    session = TreeSession(config=config, scheduler=scheduler)
    session.rebuild(list(members))
    if expand_all and session.request_cascade_expand():
        scheduler.run_all()
    branches = group_by_branch(session.index, labels=labels)
    paths = export_layout(session.frame, session.result.root, out_dir, branches=branches)
    console.log(f"Layout exported with {len(session.frame.nodes)} visible nodes")
    console.log(paths)
    return session.frame


__all__ = ["run_layout"]
