import random

import pytest

from cuematrix import DISCONNECTED, ChangeKind, GangMember, Matrix, MemberKind


@pytest.fixture
def events():
    return []


@pytest.fixture
def matrix(events):
    m = Matrix(2, 2, "Cue 1")
    m.on_change(events.append)
    return m


def test_construction_defaults():
    m = Matrix(3, 4, "Patch")
    assert (m.num_inputs, m.num_outputs, m.name) == (3, 4, "Patch")
    assert m.main_level == 0.0
    assert m.get_crosspoint(2, 3) is DISCONNECTED
    assert not m.is_connected(0, 0)
    assert m.gangs == {}
    assert m.get_active_routes() == []


def test_levels_always_within_range():
    m = Matrix(2, 2)
    rng = random.Random(7)
    for _ in range(200):
        db = rng.uniform(-500, 500)
        m.set_main_level(db)
        m.set_input_level(rng.randrange(2), db)
        m.set_output_level(rng.randrange(2), db)
        m.set_crosspoint(rng.randrange(2), rng.randrange(2), db)
    state = m.get_state()
    values = [state["main_level"], *state["input_levels"], *state["output_levels"]]
    values += [c for row in state["crosspoints"] for c in row if c is not None]
    assert all(-60.0 <= v <= 12.0 for v in values)


def test_out_of_range_indices_are_ignored(matrix, events):
    matrix.set_input_level(2, -3.0)
    matrix.set_input_level(-1, -3.0)
    matrix.set_output_level(5, -3.0)
    matrix.set_crosspoint(0, 2, 0.0)
    matrix.set_input_mute(9, True)
    matrix.set_output_solo(-1, True)
    assert events == []
    assert matrix.get_input_level(1) == 0.0


def test_getters_raise_for_bad_indices(matrix):
    with pytest.raises(IndexError):
        matrix.get_input_level(2)
    with pytest.raises(IndexError):
        matrix.get_crosspoint(0, -1)


def test_one_event_per_mutation(matrix, events):
    matrix.set_main_level(20)
    matrix.set_input_level(1, -3)
    matrix.set_output_level(0, -4)
    matrix.set_crosspoint(1, 0, -5)
    matrix.set_input_mute(0, True)
    matrix.set_output_mute(1, True)
    matrix.set_input_solo(1, True)
    matrix.set_output_solo(0, True)

    assert [(e.kind, e.input, e.output, e.value) for e in events] == [
        (ChangeKind.MAIN, None, None, 12.0),
        (ChangeKind.INPUT, 1, None, -3.0),
        (ChangeKind.OUTPUT, None, 0, -4.0),
        (ChangeKind.CROSSPOINT, 1, 0, -5.0),
        (ChangeKind.INPUT_MUTE, 0, None, True),
        (ChangeKind.OUTPUT_MUTE, None, 1, True),
        (ChangeKind.INPUT_SOLO, 1, None, True),
        (ChangeKind.OUTPUT_SOLO, None, 0, True),
    ]


def test_disconnect_crosspoint(matrix, events):
    matrix.set_crosspoint(0, 0, -60.0)
    assert matrix.is_connected(0, 0)
    matrix.clear_crosspoint(0, 0)
    assert matrix.get_crosspoint(0, 0) is DISCONNECTED
    matrix.set_crosspoint(0, 1, None)
    assert events[-1].value is DISCONNECTED


def test_gang_shifts_members_by_same_delta(matrix):
    matrix.create_gang([{"kind": "input", "index": 0}, {"kind": "output", "index": 0}])
    matrix.set_output_level(0, -2.0)
    before_in = matrix.get_input_level(0)
    before_out = matrix.get_output_level(0)

    matrix.set_input_level(0, -9.0)

    moved = matrix.get_input_level(0) - before_in
    assert moved == -9.0 - before_in
    assert matrix.get_output_level(0) - before_out == moved


def test_ganged_change_emits_per_member(matrix, events):
    matrix.set_crosspoint(0, 0, 0.0)
    matrix.set_crosspoint(1, 1, -3.0)
    gang_id = matrix.create_gang([
        GangMember.crosspoint(0, 0),
        GangMember.crosspoint(1, 1),
        GangMember.crosspoint(0, 1),
    ])
    assert matrix.find_gang(MemberKind.CROSSPOINT, (1, 1)) == gang_id
    events.clear()

    matrix.set_crosspoint(1, 1, -6.0)

    assert [(e.input, e.output, e.value) for e in events] == [(0, 0, -3.0), (1, 1, -6.0)]
    assert matrix.get_crosspoint(0, 1) is DISCONNECTED


def test_disconnecting_ganged_crosspoint_touches_only_itself(matrix, events):
    matrix.set_crosspoint(0, 0, 0.0)
    matrix.set_crosspoint(1, 1, 0.0)
    matrix.create_gang([GangMember.crosspoint(0, 0), GangMember.crosspoint(1, 1)])
    events.clear()

    matrix.set_crosspoint(0, 0, DISCONNECTED)

    assert len(events) == 1
    assert matrix.get_crosspoint(1, 1) == 0.0


def test_removed_gang_stops_linking(matrix):
    gang_id = matrix.create_gang([GangMember.input(0), GangMember.input(1)])
    assert matrix.remove_gang(gang_id)
    assert not matrix.remove_gang(gang_id)
    matrix.set_input_level(0, -10.0)
    assert matrix.get_input_level(1) == 0.0


def test_failing_observer_does_not_corrupt_state(matrix):
    seen = []

    def broken(event):
        raise ValueError("observer bug")

    matrix.on_change(broken)
    matrix.on_change(seen.append)
    matrix.create_gang([GangMember.input(0), GangMember.input(1)])

    matrix.set_input_level(0, -5.0)

    assert matrix.get_input_level(0) == -5.0
    assert matrix.get_input_level(1) == -5.0
    assert len(seen) == 2


def test_mute_zeroes_every_pair():
    m = Matrix(3, 3)
    m.set_unity()
    for i in range(3):
        for o in range(3):
            m.set_crosspoint(i, o, 0.0)
    m.set_input_mute(1, True)
    m.set_output_mute(2, True)
    for k in range(3):
        assert m.calculate_gain(1, k) == 0.0
        assert m.calculate_gain(k, 2) == 0.0


def test_input_solo_invariant():
    m = Matrix(3, 2)
    for i in range(3):
        for o in range(2):
            m.set_crosspoint(i, o, 0.0)
    m.set_input_solo(2, True)
    m.set_input_mute(0, False)
    for o in range(2):
        assert m.calculate_gain(0, o) == 0.0
        assert m.calculate_gain(1, o) == 0.0
        assert m.calculate_gain(2, o) > 0.0


def test_two_by_two_scenario(matrix):
    matrix.set_main_level(0)
    matrix.set_crosspoint(0, 0, 0)
    matrix.set_crosspoint(1, 1, 0)

    routes = matrix.get_active_routes()

    assert [(r.input, r.output) for r in routes] == [(0, 0), (1, 1)]
    assert all(r.gain == 1.0 and r.gain_db == 0.0 for r in routes)

    matrix.set_input_mute(0, True)
    assert [(r.input, r.output) for r in matrix.get_active_routes()] == [(1, 1)]


def test_set_silent_drops_all_routes(matrix, events):
    matrix.set_unity()
    matrix.set_input_solo(1, True)
    matrix.create_gang([GangMember.input(0)])
    matrix.set_main_level(6.0)
    events.clear()

    matrix.set_silent()

    assert matrix.get_active_routes() == []
    assert not matrix.has_active_routing()
    assert matrix.main_level == 6.0
    assert matrix.is_input_soloed(1)
    assert len(matrix.gangs) == 1
    assert [e.kind for e in events] == [ChangeKind.SILENT]


def test_clear_resets_everything(matrix, events):
    matrix.set_unity()
    matrix.set_input_level(0, -3.0)
    matrix.set_output_mute(1, True)
    matrix.create_gang([GangMember.input(0), GangMember.output(0)])
    events.clear()

    matrix.clear()

    assert events[0].kind is ChangeKind.CLEAR and len(events) == 1
    assert matrix.get_state() == Matrix(2, 2, "Cue 1").get_state()
    assert matrix.create_gang([]) == 2


def test_unity_sets_diagonal(events):
    m = Matrix(3, 2)
    m.on_change(events.append)
    m.set_unity()
    assert m.get_crosspoint(0, 0) == 0.0
    assert m.get_crosspoint(1, 1) == 0.0
    assert m.get_crosspoint(2, 0) is DISCONNECTED
    assert [(e.kind, e.input, e.output) for e in events] == [
        (ChangeKind.CROSSPOINT, 0, 0),
        (ChangeKind.CROSSPOINT, 1, 1),
    ]


def test_gain_matrix_matches_queries():
    m = Matrix(2, 3)
    m.set_unity()
    m.set_crosspoint(1, 2, -6.0)
    m.set_output_level(1, 3.0)
    table = m.gain_matrix()
    for i in range(2):
        for o in range(3):
            assert table[i, o] == m.calculate_gain(i, o)
