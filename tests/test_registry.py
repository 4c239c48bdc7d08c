from beauty_contest.models import LOBBY
from beauty_contest.registry import RoomRegistry


def test_ensure_room_is_idempotent():
    registry = RoomRegistry()
    room = registry.ensure_room('ABCD', 'sid-1')
    again = registry.ensure_room('ABCD', 'sid-2')
    assert room is again
    assert room.host_id == 'sid-1'
    assert room.status == LOBBY
    assert room.round == 0
    assert room.last_round_result is None


def test_add_player_defaults_name_to_position():
    registry = RoomRegistry()
    registry.ensure_room('ABCD', 'sid-1')
    first = registry.add_player('ABCD', 'sid-1', None)
    second = registry.add_player('ABCD', 'sid-2', '   ')
    third = registry.add_player('ABCD', 'sid-3', 'Cara')
    assert (first.name, second.name, third.name) == ('P1', 'P2', 'Cara')
    assert first.score == 0 and not first.is_eliminated


def test_rejoin_does_not_reset_player():
    registry = RoomRegistry()
    registry.ensure_room('ABCD', 'sid-1')
    player = registry.add_player('ABCD', 'sid-1', 'Alice')
    player.score = -3
    again = registry.add_player('ABCD', 'sid-1', 'Other')
    assert again is player
    assert again.score == -3 and again.name == 'Alice'


def test_host_leaving_promotes_earliest_joiner():
    registry = RoomRegistry()
    room = registry.ensure_room('ABCD', 'sid-1')
    for sid in ('sid-1', 'sid-2', 'sid-3'):
        registry.add_player('ABCD', sid)
    removed, deleted = registry.remove_player('ABCD', 'sid-1')
    assert removed.id == 'sid-1' and not deleted
    assert room.host_id == 'sid-2'


def test_non_host_leaving_keeps_host():
    registry = RoomRegistry()
    room = registry.ensure_room('ABCD', 'sid-1')
    registry.add_player('ABCD', 'sid-1')
    registry.add_player('ABCD', 'sid-2')
    registry.remove_player('ABCD', 'sid-2')
    assert room.host_id == 'sid-1'


def test_last_member_leaving_deletes_room_and_cancels_timers():
    class Handle:
        cancelled = False

        def cancel(self):
            self.cancelled = True

    registry = RoomRegistry()
    room = registry.ensure_room('ABCD', 'sid-1')
    registry.add_player('ABCD', 'sid-1')
    handle = Handle()
    room.timers['round'] = handle
    removed, deleted = registry.remove_player('ABCD', 'sid-1')
    assert deleted
    assert 'ABCD' not in registry
    assert handle.cancelled


def test_remove_from_unknown_room_is_noop():
    registry = RoomRegistry()
    assert registry.remove_player('NOPE', 'sid-1') == (None, False)
    registry.ensure_room('ABCD', 'sid-1')
    registry.add_player('ABCD', 'sid-1')
    assert registry.remove_player('ABCD', 'sid-9') == (None, False)
    assert len(registry) == 1


def test_rooms_with_member_and_summaries():
    registry = RoomRegistry()
    registry.ensure_room('A', 'sid-1')
    registry.add_player('A', 'sid-1', 'Alice')
    registry.ensure_room('B', 'sid-2')
    registry.add_player('B', 'sid-2')
    registry.add_player('B', 'sid-1')
    assert sorted(r.code for r in registry.rooms_with_member('sid-1')) == ['A', 'B']
    summary = {s['code']: s for s in registry.summaries()}
    assert summary['A']['host_name'] == 'Alice'
    assert summary['B']['player_count'] == 2
