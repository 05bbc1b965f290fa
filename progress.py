#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

"""
Cooperative cancellation and progress reporting for the mate search.

The engine calls SearchMonitor.visit() once per node. Every
`checkpoint_interval` visits the monitor
  1. raises SearchCancelled if the token is set (or the node budget or
     time limit is spent),
  2. reports ProgressInfo(nodes, depth) to the callback,
  3. yields (time.sleep(0)) so a host event loop or UI thread gets the GIL.

Nothing happens between checkpoints, so the position is never observed
half-updated.
"""

import asyncio
from dataclasses import dataclass
import threading
import time
from typing import Callable, Optional

__all__ = [
    "CancelToken",
    "ProgressInfo",
    "SearchCancelled",
    "SearchMonitor",
    "solve_async",
]


class SearchCancelled(Exception):
    """Raised at a checkpoint when the search has to stop."""


class CancelToken:
    """Thread-safe cancel flag with an optional deadline."""

    def __init__(self, deadline: Optional[float] = None) -> None:
        self._event = threading.Event()
        self.deadline = deadline

    @classmethod
    def after(cls, seconds: float) -> "CancelToken":
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        if self._event.is_set():
            return True
        if self.deadline is not None and time.monotonic() >= self.deadline:
            self._event.set()
            return True
        return False


@dataclass(frozen=True)
class ProgressInfo:
    nodes: int
    depth: int


ProgressCallback = Callable[[ProgressInfo], None]


class SearchMonitor:
    def __init__(
        self,
        checkpoint_interval: int = 5000,
        token: Optional[CancelToken] = None,
        on_progress: Optional[ProgressCallback] = None,
        max_nodes: Optional[int] = None,
        deadline: Optional[float] = None,
    ) -> None:
        self.checkpoint_interval = max(1, checkpoint_interval)
        self.token = token
        self.on_progress = on_progress
        self.max_nodes = max_nodes
        # time.monotonic() 基準。呼び出し側のトークンには書き込まない
        self.deadline = deadline
        self.nodes = 0
        self.depth = 0

    def check(self) -> None:
        """Cancellation test without counting a node (used between iterations)."""
        if self.token is not None and self.token.is_set():
            raise SearchCancelled(f"cancelled at {self.nodes} nodes")
        if self.max_nodes is not None and self.nodes >= self.max_nodes:
            raise SearchCancelled(f"node budget {self.max_nodes} exhausted")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise SearchCancelled(f"time limit reached at {self.nodes} nodes")

    def visit(self) -> None:
        self.nodes += 1
        if self.nodes % self.checkpoint_interval:
            return
        self.check()
        if self.on_progress is not None:
            self.on_progress(ProgressInfo(self.nodes, self.depth))
        time.sleep(0)


async def solve_async(
    snapshot,
    limits=None,
    timeout: Optional[float] = None,
    on_progress: Optional[ProgressCallback] = None,
    token: Optional[CancelToken] = None,
):
    """
    Run solve() off the event loop. A timeout, or cancelling the awaiting task,
    trips the token; the search notices at its next checkpoint and returns a
    TIMED_OUT result (task cancellation still propagates CancelledError).
    """
    from solver_core import solve

    if token is None:
        token = CancelToken()
    loop = asyncio.get_running_loop()
    handle = loop.call_later(timeout, token.cancel) if timeout is not None else None
    try:
        return await asyncio.to_thread(solve, snapshot, limits, token=token, on_progress=on_progress)
    except asyncio.CancelledError:
        token.cancel()
        raise
    finally:
        if handle is not None:
            handle.cancel()
