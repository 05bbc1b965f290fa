# tests/test_progress.py
import asyncio
import time

import pytest

from models import SolveLimits, SolveStatus
from progress import CancelToken, SearchCancelled, SearchMonitor, solve_async
from sfen import sfen_to_snapshot


def test_cancel_token():
    token = CancelToken()
    assert not token.is_set()
    token.cancel()
    assert token.is_set()

    assert CancelToken.after(0).is_set()
    assert not CancelToken.after(3600).is_set()


def test_monitor_checks_only_at_checkpoints():
    token = CancelToken()
    seen = []
    mon = SearchMonitor(checkpoint_interval=3, token=token, on_progress=seen.append)
    mon.depth = 5
    mon.visit()
    mon.visit()
    token.cancel()
    # 3ノード目がチェックポイント
    with pytest.raises(SearchCancelled):
        mon.visit()
    assert mon.nodes == 3
    assert seen == []


def test_monitor_reports_progress():
    seen = []
    mon = SearchMonitor(checkpoint_interval=2, on_progress=seen.append)
    mon.depth = 3
    for _ in range(5):
        mon.visit()
    assert [(p.nodes, p.depth) for p in seen] == [(2, 3), (4, 3)]


def test_monitor_node_budget():
    mon = SearchMonitor(checkpoint_interval=1, max_nodes=2)
    mon.visit()
    with pytest.raises(SearchCancelled):
        mon.visit()


def test_monitor_deadline():
    mon = SearchMonitor(checkpoint_interval=1, deadline=time.monotonic() - 1)
    with pytest.raises(SearchCancelled):
        mon.check()

    mon = SearchMonitor(checkpoint_interval=1, deadline=time.monotonic() + 3600)
    mon.visit()
    mon.check()
    assert mon.nodes == 1


def test_solve_async_mate():
    snap = sfen_to_snapshot("4k4/9/4P4/9/9/9/9/9/9 b G 1")
    res = asyncio.run(solve_async(snap, SolveLimits(max_ply=5)))
    assert res.status is SolveStatus.MATE
    assert len(res.path) == 1


def test_solve_async_with_cancelled_token():
    token = CancelToken()
    token.cancel()
    snap = sfen_to_snapshot("7bk/9/9/8P/9/9/9/9/9 b BG 1")
    res = asyncio.run(solve_async(snap, token=token))
    assert res.status is SolveStatus.TIMED_OUT


def test_solve_async_timer_is_cleaned_up():
    token = CancelToken()
    snap = sfen_to_snapshot("8k/9/9/9/9/9/9/9/9 b G 1")
    res = asyncio.run(solve_async(snap, SolveLimits(max_ply=3), timeout=60, token=token))
    # 時間内に終われば通常の結果、タイマーは後始末される
    assert res.status is SolveStatus.NO_MATE
    assert not token.is_set()


def test_solve_async_timeout_cancels_search():
    token = CancelToken()
    # 中央の玉に金銀だけでは詰まないので、29手まで読むと時間内には終わらない
    snap = sfen_to_snapshot("9/9/9/9/4k4/9/9/9/9 b GS 1")
    limits = SolveLimits(max_ply=29, checkpoint_interval=1, use_transposition=False)
    res = asyncio.run(solve_async(snap, limits, timeout=0.05, token=token))
    assert res.status is SolveStatus.TIMED_OUT
    assert res.path is None
    assert token.is_set()
