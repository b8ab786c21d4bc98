"""cooldown のテスト。"""

from timevote.cooldown import CooldownGuard


def test_vote_cooldown_per_participant() -> None:
    g = CooldownGuard(vote_cooldown=60, change_cooldown=300)
    assert g.can_vote("a", 0.0)
    assert g.remaining_vote_cooldown("a", 0.0) == 0.0

    g.mark_voted("a", 10.0)
    assert not g.can_vote("a", 30.0)
    assert g.remaining_vote_cooldown("a", 30.0) == 40.0
    assert g.can_vote("b", 30.0)
    assert g.can_vote("a", 70.0)
    assert g.remaining_vote_cooldown("a", 500.0) == 0.0


def test_change_cooldown_is_global() -> None:
    g = CooldownGuard(vote_cooldown=60, change_cooldown=300)
    assert g.can_change(0.0)
    assert g.last_change is None

    g.mark_changed(100.0)
    assert not g.can_change(399.0)
    assert g.remaining_change_cooldown(250.0) == 150.0
    assert g.can_change(400.0)


def test_configure_keeps_timestamps() -> None:
    g = CooldownGuard(vote_cooldown=60, change_cooldown=300)
    g.mark_voted("a", 0.0)
    g.mark_changed(0.0)
    g.configure(vote_cooldown=10, change_cooldown=20)

    assert g.can_vote("a", 10.0)
    assert not g.can_change(19.0)
    assert g.can_change(20.0)
