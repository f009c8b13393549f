"""Tests for the per-event actor directory and path progress."""

import pytest

from citysiege.models.actor import Progress, Side, Tier
from citysiege.models.directory import ActorDirectory
from citysiege.util.errors import DuplicateActor, NotFound


class TestProgress:
    def test_start_indices(self):
        assert Progress.start(Side.ATTACKER, 3) == Progress(Side.ATTACKER, 0)
        assert Progress.start(Side.DEFENDER, 3) == Progress(Side.DEFENDER, 3)

    def test_attacker_counts_up_and_clamps(self):
        p = Progress.start(Side.ATTACKER, 2)
        p = p.advanced(2)
        p = p.advanced(2)
        assert p.index == 2 and p.is_terminal(2)
        assert p.advanced(2) == p

    def test_defender_counts_down_and_clamps(self):
        p = Progress.start(Side.DEFENDER, 2)
        p = p.advanced(2).advanced(2)
        assert p.index == 0 and p.is_terminal(2)
        assert p.advanced(2) == p

    def test_no_waypoints_is_terminal_from_the_start(self):
        assert Progress.start(Side.ATTACKER, 0).is_terminal(0)
        assert Progress.start(Side.DEFENDER, 0).is_terminal(0)


class TestActorDirectory:
    def test_register_sets_start_index(self):
        d = ActorDirectory(waypoint_count=4)
        a = d.register(1, Tier.MINION, Side.ATTACKER)
        b = d.register(2, Tier.DEFENDER, Side.DEFENDER)
        assert a.progress.index == 0
        assert b.progress.index == 4
        assert len(d) == 2

    def test_register_duplicate_raises(self):
        d = ActorDirectory(2)
        d.register(1, Tier.MINION, Side.ATTACKER)
        with pytest.raises(DuplicateActor):
            d.register(1, Tier.ELITE, Side.ATTACKER)

    def test_advance_unknown_raises(self):
        with pytest.raises(NotFound):
            ActorDirectory(2).advance(99)

    def test_advance_is_bounded(self):
        d = ActorDirectory(2)
        d.register(1, Tier.MINION, Side.ATTACKER)
        for _ in range(5):
            d.advance(1)
        assert d.get(1).progress.index == 2

    def test_reassign_resets_progress(self):
        d = ActorDirectory(3)
        d.register(1, Tier.ELITE, Side.ATTACKER)
        d.advance(1)
        d.advance(1)
        entry = d.reassign(1, 50)
        assert 1 not in d
        assert entry.identity == 50
        assert entry.tier is Tier.ELITE
        assert entry.progress == Progress(Side.ATTACKER, 0)

    def test_reassign_same_identity(self):
        d = ActorDirectory(3)
        d.register(7, Tier.BOT, Side.DEFENDER, is_bot=True)
        d.advance(7)
        entry = d.reassign(7, 7)
        assert entry.progress.index == 3
        assert entry.is_bot

    def test_reassign_onto_existing_raises(self):
        d = ActorDirectory(1)
        d.register(1, Tier.MINION, Side.ATTACKER)
        d.register(2, Tier.MINION, Side.ATTACKER)
        with pytest.raises(DuplicateActor):
            d.reassign(1, 2)
        assert 1 in d

    def test_reassign_unknown_raises(self):
        with pytest.raises(NotFound):
            ActorDirectory(1).reassign(1, 2)

    def test_queries(self):
        d = ActorDirectory(1)
        d.register(1, Tier.LEADER, Side.ATTACKER)
        d.register(2, Tier.MINION, Side.ATTACKER)
        d.register(3, Tier.DEFENDER, Side.DEFENDER)
        d.register(4, Tier.BOT, Side.DEFENDER, is_bot=True)

        assert [e.identity for e in d.natives()] == [1, 2, 3]
        assert [e.identity for e in d.bots()] == [4]
        assert [e.identity for e in d.by_tier(Tier.LEADER, Tier.MINION)] == [1, 2]
        assert d.count(Side.DEFENDER) == 2
        assert d.count(Side.DEFENDER, include_bots=False) == 1
        assert d.find(99) is None

    def test_iteration_tolerates_removal(self):
        d = ActorDirectory(1)
        for i in range(3):
            d.register(i, Tier.MINION, Side.ATTACKER)
        for entry in d:
            d.remove(entry.identity)
        assert len(d) == 0

    def test_tier_speaks(self):
        assert Tier.LEADER.speaks and Tier.MINI_BOSS.speaks
        assert not Tier.MINION.speaks and not Tier.BOT.speaks
        assert Tier.MINI_BOSS.label == "Mini Boss"
