from __future__ import annotations

import pytest

from raid_sim.domain.types import Resources
from raid_sim.systems.targets import evaluate_targets, relationship_towards, score_target
from tests.helpers.factories import make_engine, make_engine_with, make_home, make_settlement, rules


def _target(settlement_id: str = "target", **kwargs):
    kwargs.setdefault("x", 100.0)
    kwargs.setdefault("defenses", 2)
    kwargs.setdefault("resources", Resources(silver=50, gold=10))
    return make_settlement(settlement_id, **kwargs)


def test_score_matches_weighted_formula():
    origin = make_home()
    evaluation = score_target(_target(), origin, rules().raid_class("standard_raid"), rules().targeting)

    # -1 * 100/100 - 2 * 2 + 2 * (100 + 50)/100 - 1.5 * 50/100
    assert evaluation.score == pytest.approx(-2.75)
    assert evaluation.distance == pytest.approx(100.0)
    assert evaluation.wealth_score == pytest.approx(150.0)
    assert evaluation.relationship == 50
    assert evaluation.defense_strength == 2


def test_relationship_reads_stance_towards_origin():
    origin = make_home()
    friendly = _target(relations={origin.id: 80})
    hostile = _target(relations={origin.id: -300})

    assert relationship_towards(friendly, origin, rules().targeting) == 80
    assert relationship_towards(hostile, origin, rules().targeting) == -100

    config = rules().targeting
    standard = rules().raid_class("standard_raid")
    assert score_target(hostile, origin, standard, config).score > score_target(friendly, origin, standard, config).score


def test_coastal_preference_bonus_and_penalty():
    origin = make_home()
    sea = rules().raid_class("sea_raid")
    base = score_target(_target(), origin, rules().raid_class("standard_raid"), rules().targeting).score

    coastal = score_target(_target(coastal=True), origin, sea, rules().targeting)
    inland = score_target(_target(coastal=False), origin, sea, rules().targeting)

    assert coastal.score == pytest.approx(base + 30)
    assert inland.score == pytest.approx(base - 50)


def test_nearby_preference_penalises_distance():
    origin = make_home()
    quick = rules().raid_class("quick_raid")
    base = score_target(_target(), origin, rules().raid_class("standard_raid"), rules().targeting).score

    evaluation = score_target(_target(), origin, quick, rules().targeting)

    assert evaluation.score == pytest.approx(base - 100 / 50)


def test_wealthy_preference_rewards_wealth():
    origin = make_home()
    great = rules().raid_class("great_raid")
    base = score_target(_target(), origin, rules().raid_class("standard_raid"), rules().targeting).score

    evaluation = score_target(_target(), origin, great, rules().targeting)

    assert evaluation.score == pytest.approx(base + 150 / 50)


def test_targets_sorted_best_first_and_exclude_origin():
    origin = make_home()
    candidates = [
        origin,
        _target("far", x=400.0),
        _target("near", x=20.0),
        _target("rich", x=100.0, resources=Resources(silver=500, gold=100)),
    ]

    ranked = evaluate_targets(candidates, origin, rules().raid_class("standard_raid"), rules().targeting)

    assert [e.settlement.id for e in ranked] == ["rich", "near", "far"]
    scores = [e.score for e in ranked]
    assert scores == sorted(scores, reverse=True)


def test_equal_scores_keep_candidate_order():
    origin = make_home()
    candidates = [_target("a", y=0.0), _target("b", y=0.0), _target("c", y=0.0)]

    ranked = evaluate_targets(candidates, origin, rules().raid_class("standard_raid"), rules().targeting)

    assert [e.settlement.id for e in ranked] == ["a", "b", "c"]


def test_ship_classes_still_list_inland_targets():
    origin = make_home()
    candidates = [_target("inland", coastal=False), _target("shore", coastal=True)]

    ranked = evaluate_targets(candidates, origin, rules().raid_class("sea_raid"), rules().targeting)

    assert [e.settlement.id for e in ranked] == ["shore", "inland"]


def test_engine_evaluate_targets_unknown_class_is_empty():
    engine = make_engine_with([_target()])

    assert engine.evaluate_targets("longship_armada") == []
    assert [e.settlement.id for e in engine.evaluate_targets("standard_raid")] == ["target"]


def test_default_scenario_has_targets_for_every_class():
    engine = make_engine()

    for raid_class_id in rules().raid_classes:
        ranked = engine.evaluate_targets(raid_class_id)
        ids = {e.settlement.id for e in ranked}
        assert "hrafnvik" not in ids
        assert len(ranked) == len(engine.ports.world.settlements()) - 1
