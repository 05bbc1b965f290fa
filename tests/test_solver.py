# tests/test_solver.py
import pytest

from errors import PositionError
from models import Kind, Move, Side, SolveLimits, SolveStatus
from movegen import legal_moves
from progress import CancelToken
from sfen import sfen_to_snapshot
from solver_core import (
    continuation_after,
    legal_moves_after,
    prepare_position,
    replay,
    solve,
    verify_mate_path,
)

MATE1 = "4k4/9/4P4/9/9/9/9/9/9 b G 1"
MATE3 = "7bk/9/9/8P/9/9/9/9/9 b BG 1"
UCHIFUZUME = "7nk/9/7G1/9/9/9/9/9/9 b P 1"
PAWN_PUSH_MATE = "7nk/9/7GP/9/9/9/9/9/9 b - 1"
NO_MATE = "8k/9/9/9/9/9/9/9/9 b G 1"
# 1一玉を3二銀・2四銀で囲み、5一角が3三に出て王手、銀1枚が持駒
SILVER_BOX = "4B3k/6S2/9/7S1/9/9/9/9/9 b S 1"


def _assert_forced_mate(sfen, path):
    snap = sfen_to_snapshot(sfen)
    assert verify_mate_path(prepare_position(snap), path)
    end = replay(snap, path)
    assert end.side_to_move is Side.DEFENDER
    assert legal_moves(end) == []


def test_mate_in_one_head_gold():
    res = solve(sfen_to_snapshot(MATE1))
    assert res.status is SolveStatus.MATE
    assert res.path == (Move(Side.ATTACKER, Kind.GOLD, None, 13),)
    assert res.depth_completed == 1
    assert res.summary() == "1手詰"
    _assert_forced_mate(MATE1, res.path)


def test_mate_in_three():
    res = solve(sfen_to_snapshot(MATE3), SolveLimits(max_ply=9))
    assert res.is_mate
    assert len(res.path) == 3
    assert res.depth_completed == 3
    assert res.nodes < 10000
    _assert_forced_mate(MATE3, res.path)


def test_silver_box_mate_in_three():
    res = solve(sfen_to_snapshot(SILVER_BOX), SolveLimits(max_ply=9))
    assert res.is_mate
    assert len(res.path) == 3
    assert res.depth_completed == 3
    assert res.nodes < 10000
    _assert_forced_mate(SILVER_BOX, res.path)


def test_silver_box_has_no_mate_in_one():
    snap = sfen_to_snapshot(SILVER_BOX)
    for mv in legal_moves_after(snap):
        assert legal_moves_after(snap, (mv,), check_only=False), str(mv)


def test_transposition_does_not_change_length():
    with_tt = solve(sfen_to_snapshot(MATE3), SolveLimits(max_ply=9))
    without = solve(sfen_to_snapshot(MATE3), SolveLimits(max_ply=9, use_transposition=False))
    assert len(with_tt.path) == len(without.path) == 3
    _assert_forced_mate(MATE3, without.path)
    assert len(without.continuations) == 1


def test_hash_seed_does_not_change_result():
    a = solve(sfen_to_snapshot(MATE3), SolveLimits(max_ply=9, hash_seed=1))
    b = solve(sfen_to_snapshot(MATE3), SolveLimits(max_ply=9, hash_seed=12345))
    assert len(a.path) == len(b.path) == 3


def test_uchifuzume_is_not_a_mate():
    res = solve(sfen_to_snapshot(UCHIFUZUME), SolveLimits(max_ply=5))
    assert res.status is SolveStatus.NO_MATE
    assert res.path is None
    assert res.depth_completed == 5


def test_pawn_push_mate():
    res = solve(sfen_to_snapshot(PAWN_PUSH_MATE))
    assert res.is_mate
    assert len(res.path) == 1
    assert res.path[0].frm == 26


def test_no_mate():
    res = solve(sfen_to_snapshot(NO_MATE), SolveLimits(max_ply=9))
    assert res.status is SolveStatus.NO_MATE
    assert res.summary() == "詰みなし"


def test_no_checks_at_all_is_no_mate_immediately():
    res = solve(sfen_to_snapshot("8k/9/9/9/9/9/9/9/P8 b - 1"))
    assert res.status is SolveStatus.NO_MATE
    assert res.depth_completed == 0


def test_cancelled_token_times_out():
    token = CancelToken()
    token.cancel()
    res = solve(sfen_to_snapshot(MATE3), token=token)
    assert res.status is SolveStatus.TIMED_OUT
    assert res.path is None
    assert res.depth_completed == 0


def test_node_budget_times_out():
    res = solve(sfen_to_snapshot(MATE3), SolveLimits(max_nodes=5, checkpoint_interval=1))
    assert res.status is SolveStatus.TIMED_OUT
    assert res.path is None
    assert res.nodes == 5
    assert res.depth_completed == 0


def test_timeout_reports_deepest_completed_depth():
    snap = sfen_to_snapshot("8k/9/9/9/9/9/9/9/9 b GS 1")
    shallow = solve(snap, SolveLimits(max_ply=3, checkpoint_interval=1))
    assert shallow.status is SolveStatus.NO_MATE
    assert shallow.depth_completed == 3

    # 3手までは読み切り、5手の途中で予算切れ
    res = solve(snap, SolveLimits(max_nodes=shallow.nodes + 5, checkpoint_interval=1))
    assert res.status is SolveStatus.TIMED_OUT
    assert res.path is None
    assert res.depth_completed == 3
    assert res.summary() == "時間切れ（3手まで探索済み）"


def test_zero_time_limit_times_out():
    res = solve(sfen_to_snapshot(MATE3), SolveLimits(max_time_sec=0.0))
    assert res.status is SolveStatus.TIMED_OUT
    assert "時間切れ" in res.summary()


def test_time_limit_leaves_callers_token_untouched():
    token = CancelToken()
    res = solve(sfen_to_snapshot(MATE3), SolveLimits(max_time_sec=0.0), token=token)
    assert res.status is SolveStatus.TIMED_OUT
    assert token.deadline is None
    assert not token.is_set()

    again = solve(sfen_to_snapshot(MATE3), SolveLimits(max_ply=9), token=token)
    assert again.is_mate


def test_progress_callback_is_called():
    seen = []
    solve(sfen_to_snapshot(MATE3), SolveLimits(max_ply=9, checkpoint_interval=2), on_progress=seen.append)
    assert seen
    assert all(p.nodes % 2 == 0 for p in seen)
    assert [p.nodes for p in seen] == sorted(p.nodes for p in seen)


def test_defender_to_move_is_rejected():
    with pytest.raises(PositionError):
        solve(sfen_to_snapshot("4k4/9/4P4/9/9/9/9/9/9 w G 1"))


def test_king_already_in_check_is_rejected():
    with pytest.raises(PositionError):
        solve(sfen_to_snapshot("4k4/4P4/9/9/9/9/9/9/9 b G 1"))


def test_invalid_snapshot_is_rejected():
    with pytest.raises(PositionError):
        solve(sfen_to_snapshot("9/9/9/9/9/9/9/9/9 b G 1"))


def test_continuations_for_browsing():
    snap = sfen_to_snapshot(MATE3)
    res = solve(snap, SolveLimits(max_ply=9))
    assert res.continuations[prepare_position(snap).key] == res.path

    cont = continuation_after(res, snap, res.path[:1])
    assert cont is not None
    assert len(cont) == 2
    assert cont[0].side is Side.DEFENDER

    with pytest.raises(TypeError):
        res.continuations[0] = ()


def test_continuation_after_uses_the_result_seed():
    snap = sfen_to_snapshot(MATE3)
    res = solve(snap, SolveLimits(max_ply=9, hash_seed=7))
    assert res.hash_seed == 7
    assert continuation_after(res, snap, ()) == res.path
    cont = continuation_after(res, snap, res.path[:1])
    assert cont is not None
    assert len(cont) == 2
    # 別の seed で再生するとキーが一致しない
    assert continuation_after(res, snap, res.path[:1], SolveLimits(hash_seed=0)) is None


def test_legal_moves_after_prefix():
    snap = sfen_to_snapshot(MATE3)
    root = legal_moves_after(snap)
    assert root
    assert all(m.side is Side.ATTACKER for m in root)
    replies = legal_moves_after(snap, root[:1])
    assert replies
    assert all(m.side is Side.DEFENDER for m in replies)
    quiet = legal_moves_after(snap, check_only=False)
    assert len(quiet) > len(root)


def test_replay_rejects_illegal_move():
    snap = sfen_to_snapshot(MATE1)
    with pytest.raises(PositionError):
        replay(snap, [Move(Side.ATTACKER, Kind.ROOK, None, 13)])


def test_records():
    res = solve(sfen_to_snapshot(MATE1))
    (rec,) = res.records()
    assert rec.ply == 1
    assert rec.origin is None
    assert str(rec.dest) == "５二"
    assert rec.piece is Kind.GOLD
    assert not rec.promoted
