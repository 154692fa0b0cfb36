import pytest

from tictactoe_ai.game_basics import (
    WIN_PATTERNS,
    Outcome,
    WinResult,
    available_cells,
    check_winner,
    empty_board,
    is_terminal,
    is_valid_state,
    mark_to_move,
    outcome,
    place,
    render_board,
)


@pytest.mark.parametrize("pattern", WIN_PATTERNS)
@pytest.mark.parametrize("mark,expected", [("X", Outcome.OPPONENT_WINS), ("O", Outcome.AGENT_WINS)])
def test_every_line_reports_its_winner(pattern, mark, expected):
    cells = ["-"] * 9
    for i in pattern:
        cells[i] = mark
    state = "".join(cells)
    res = check_winner(state)
    assert res == WinResult(mark, tuple(pattern))
    assert outcome(state) is expected


def test_top_row_scenario():
    res = check_winner("XXX------")
    assert res.winner == "X"
    assert res.line == (0, 1, 2)
    assert outcome("XXX------") is Outcome.OPPONENT_WINS


def test_full_board_without_line_is_draw():
    state = "XOXXOOOXX"
    assert check_winner(state) == WinResult("draw", None)
    assert outcome(state) is Outcome.DRAW
    assert is_terminal(state)


def test_alternating_full_board_is_a_diagonal_win():
    # X holds every even cell, so the main diagonal is complete
    res = check_winner("XOXOXOXOX")
    assert res.winner == "X"
    assert res.line == (0, 4, 8)


def test_board_with_empty_cells_and_no_line_in_progress():
    assert check_winner("X---O----") is None
    assert outcome("X---O----") is Outcome.IN_PROGRESS
    assert outcome(empty_board()) is Outcome.IN_PROGRESS


def test_place_returns_new_state_and_rejects_occupied():
    s0 = empty_board()
    s1 = place(s0, 4, "X")
    assert s0 == "---------"
    assert s1 == "----X----"
    with pytest.raises(ValueError):
        place(s1, 4, "O")
    with pytest.raises(ValueError):
        place(s1, 9, "O")
    with pytest.raises(ValueError):
        place(s1, 0, "Z")


def test_available_cells_and_side_to_move():
    assert available_cells("XO-X-O---") == [2, 4, 6, 7, 8]
    assert available_cells("XOXXOOOXX") == []
    assert mark_to_move(empty_board()) == "X"
    assert mark_to_move("X--------") == "O"


@pytest.mark.parametrize("state,valid", [
    ("---------", True),
    ("XX-OO----", True),
    ("XXX-OO---", True),
    ("XXX------", False),   # counts impossible
    ("OOOXX-X-X", False),   # O cannot win while X has moved more
    ("XXXOOO---", False),   # both sides win
    ("XX-OO---", False),    # too short
    ("XX-OO---Z", False),
])
def test_is_valid_state(state, valid):
    assert is_valid_state(state) is valid


def test_render_board_shows_marks_and_free_indices():
    text = render_board("X---O----")
    assert text.splitlines()[0] == " X | 1 | 2"
    assert " 3 | O | 5" in text
