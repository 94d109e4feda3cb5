import pytest

from ladder.services.format_registry import resolve
from ladder.services.match_aggregator import aggregate
from ladder.services.ranking import head_to_head_differential, rank_by_label, resolve_order


def _order(format_id, card):
    spec = resolve(format_id)
    return resolve_order(spec, aggregate(spec, card))


class TestCascade:
    def test_set_wins_decide_first(self):
        """A beats B, loses to C; B and C split."""
        card = [
            [(10, 21), (12, 21)],  # A-C
            [(21, 10), (21, 12)],  # A-B
            [(21, 15), (15, 21)],  # B-C
        ]
        assert _order("3-teams-6-sets", card) == ["C", "A", "B"]

    def test_two_way_tie_uses_head_to_head(self):
        """A and B tie on sets and differential; B won their meeting on points."""
        card = [
            [(21, 10), (21, 10)],  # A-C
            [(21, 19), (15, 21)],  # A-B
            [(21, 14), (21, 14)],  # B-C
        ]
        spec = resolve("3-teams-6-sets")
        agg = aggregate(spec, card)
        assert agg.stats["A"].set_wins == agg.stats["B"].set_wins == 3
        assert agg.stats["A"].differential == agg.stats["B"].differential == 18
        assert head_to_head_differential(agg, "B", "A") == 4
        assert head_to_head_differential(agg, "A", "B") == -4
        assert resolve_order(spec, agg) == ["B", "A", "C"]

    def test_three_way_tie_falls_back_to_label_order(self):
        card = [
            [(21, 15), (19, 21)],  # A-C
            [(21, 19), (15, 21)],  # A-B
            [(21, 19), (15, 21)],  # B-C
        ]
        spec = resolve("3-teams-6-sets")
        agg = aggregate(spec, card)
        assert {agg.stats[x].set_wins for x in "ABC"} == {2}
        assert {agg.stats[x].differential for x in "ABC"} == {0}
        assert resolve_order(spec, agg) == ["A", "B", "C"]

    def test_differential_breaks_set_tie(self):
        card = [[(21, 5), (21, 5), (5, 21), (19, 21)]]
        assert _order("2-teams-4-sets", card) == ["A", "B"]

    def test_nine_set_ranks_by_match_wins(self):
        card = [
            [(21, 10), (10, 21), (10, 21)],  # A-C, C wins
            [(21, 10), (10, 21), (10, 21)],  # A-B, B wins
            [(21, 10), (21, 10)],  # B-C, B wins
        ]
        assert _order("3-teams-elite-9-sets", card) == ["B", "C", "A"]


class TestGame2Courts:
    def test_six_team_order_follows_game2_courts(self):
        card = [
            [(25, 20), (25, 18)],
            [(18, 25), (20, 25)],
            [(15, 25), (20, 25)],
            [(25, 20), (25, 22)],
            [(25, 23), (20, 25)],
            [(25, 10), (25, 12)],
        ]
        assert _order("6-teams-head-to-head", card) == ["A", "D", "F", "B", "C", "E"]

    def test_four_team_order(self):
        card = [
            [(25, 20), (25, 20)],
            [(20, 25), (20, 25)],
            [(23, 25), (23, 25)],  # A vs D, D wins
            [(25, 15), (25, 15)],  # B vs C, B wins
        ]
        assert _order("4-teams-head-to-head", card) == ["D", "A", "B", "C"]


class TestTotalOrder:
    @pytest.mark.parametrize(
        "format_id,card",
        [
            ("2-teams-4-sets", [[(21, 10), (10, 21), (21, 10), (10, 21)]]),
            ("2-teams-best-of-5", [[(25, 10), (10, 25), (25, 10), (10, 25), (15, 10)]]),
            ("3-teams-elite-6-sets", [[(30, 28), (28, 30)], [(30, 28), (28, 30)], [(30, 28), (28, 30)]]),
        ],
    )
    def test_fully_tied_input_still_yields_a_permutation(self, format_id, card):
        order = _order(format_id, card)
        assert sorted(order) == sorted(resolve(format_id).labels)
        assert len(set(order)) == len(order)

    def test_rank_by_label(self):
        assert rank_by_label(["C", "A", "B"]) == {"C": 1, "A": 2, "B": 3}
