# tests/test_kif_format.py
from kif_format import (
    generate_kif_text,
    kif_line_for_move,
    path_to_kif_moves,
    snapshot_to_piyo,
)
from models import Kind, Move, Side
from sfen import sfen_to_snapshot
from solver_core import solve


def test_kif_line_drop_and_same_square():
    drop = Move(Side.ATTACKER, Kind.GOLD, None, 13)
    line, prev = kif_line_for_move(1, drop, None, 3, 3)
    assert line.startswith("   1 ５二金打")
    assert line.endswith("( 0:03/00:00:03)")
    assert prev == 13

    take = Move(Side.DEFENDER, Kind.KING, 4, 13)
    line, _ = kif_line_for_move(2, take, prev, 3, 6)
    assert line.startswith("   2 同　玉(51)")


def test_kif_line_promotion():
    mv = Move(Side.ATTACKER, Kind.PAWN, 29, 20, promote=True)
    line, _ = kif_line_for_move(1, mv, None, 3, 3)
    assert "７三歩成(74)" in line


def test_move_str_and_usi():
    assert str(Move(Side.ATTACKER, Kind.GOLD, None, 13)) == "▲５二金打"
    assert Move(Side.ATTACKER, Kind.GOLD, None, 13).usi() == "G*5b"
    assert Move(Side.ATTACKER, Kind.PAWN, 29, 20, promote=True).usi() == "7d7c+"
    assert str(Move(Side.DEFENDER, Kind.KING, 4, 3)) == "△６一玉(51)"


def test_path_to_kif_moves_uses_same():
    path = (
        Move(Side.ATTACKER, Kind.GOLD, None, 13),
        Move(Side.DEFENDER, Kind.KING, 4, 13),
    )
    assert path_to_kif_moves(path) == ["▲５二金打", "△同　玉(51)"]


def test_piyo_board():
    snap = sfen_to_snapshot("4k4/9/4+N4/9/9/9/9/9/9 b G 1")
    lines = snapshot_to_piyo(snap).splitlines()
    assert lines[0] == "  ９ ８ ７ ６ ５ ４ ３ ２ １"
    assert lines[2] == "| ・ ・ ・ ・v玉 ・ ・ ・ ・|一"
    assert lines[4] == "| ・ ・ ・ ・ 圭 ・ ・ ・ ・|三"
    assert len(lines) == 12


def test_generate_kif_text_for_solution():
    snap = sfen_to_snapshot("4k4/9/4P4/9/9/9/9/9/9 b G 1")
    res = solve(snap)
    text = generate_kif_text(snap, res.path, sente_name="攻め方")
    lines = text.splitlines()
    assert "手合割：平手" in lines
    assert "先手の持駒：金" in lines
    assert "先手：攻め方" in lines
    assert any(ln.startswith("後手の持駒：飛二") for ln in lines)
    i = lines.index("手数----指手---------消費時間--")
    assert lines[i + 1].startswith("   1 ５二金打")
    assert lines[i + 2].startswith("   2 詰み")
    # cp932 で保存できること
    text.encode("cp932")
