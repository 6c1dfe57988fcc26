import logging

import pytest

from citynav.domain.types import RoadNode, ArrivalInfo, QLearningConfig
from citynav.domain.poi import PointsOfInterest
from citynav.domain.road_graph import RoadGraph
from citynav.domain.path_planner import find_path
from citynav.brains.qlearning import QLearningBrain
from citynav.brains.rewards import DistanceShapedReward
from citynav.app.trainer import run_episode, train_episodes, greedy_route
from citynav.errors import TransitionPendingError
from citynav.utils.city_factory import create_corridor, create_city
from citynav.utils.rng import SeededRNG


def _short_corridor():
    graph = create_corridor(2)
    pois = PointsOfInterest()
    pois.add("end", RoadNode(1, 0))
    return graph, pois


def test_corridor_policy_heads_towards_goal(corridor, corridor_pois, corridor_config):
    brain = QLearningBrain(corridor, corridor_pois, corridor_config)

    summary = train_episodes(brain, "end", lambda: RoadNode(0, 0), 50)

    assert summary.total_episodes == 50
    assert brain.epsilon == pytest.approx(0.02)
    brain.epsilon = 0.0
    for x in range(4):
        brain.set_goal("end", RoadNode(x, 0))
        assert brain.choose_next_road(RoadNode(x, 0)) == (x + 1, 0)


def test_lattice_policy_matches_shortest_paths(blocked_lattice):
    pois = PointsOfInterest()
    pois.add("shop", RoadNode(2, 2))
    config = QLearningConfig(
        learning_rate=0.5,
        discount_factor=0.9,
        epsilon=0.5,
        epsilon_min=0.0,
        epsilon_decay=0.99,
        max_episode_steps=40,
        reward_goal=5.0,
        reward_step=-0.1,
        seed=11,
    )
    brain = QLearningBrain(blocked_lattice, pois, config)
    rng = SeededRNG(5)
    starts = [node for node in blocked_lattice.nodes() if node != (2, 2)]

    train_episodes(brain, "shop", lambda: rng.choice(starts), 500)

    for start in starts:
        learned = greedy_route(brain, "shop", start)
        shortest = find_path(blocked_lattice, start, RoadNode(2, 2))
        assert learned.success, start
        assert learned.length == shortest.length, start


def test_random_exploration_always_times_out(blocked_lattice):
    blocked_lattice.add_road(RoadNode(9, 9))
    pois = PointsOfInterest()
    pois.add("island", RoadNode(9, 9))
    config = QLearningConfig(epsilon=1.0, epsilon_min=1.0, epsilon_decay=1.0,
                             max_episode_steps=10, seed=1)
    brain = QLearningBrain(blocked_lattice, pois, config)

    for _ in range(20):
        record = run_episode(brain, "island", RoadNode(0, 0))
        assert record is not None
        assert record.reason == "timeout"
        assert record.steps == 10
    assert brain.episode_count == 20


def test_episodes_end_within_step_cap(blocked_lattice):
    pois = PointsOfInterest()
    pois.add("shop", RoadNode(2, 2))
    config = QLearningConfig(epsilon=1.0, epsilon_min=1.0, epsilon_decay=1.0,
                             max_episode_steps=6, seed=2)
    brain = QLearningBrain(blocked_lattice, pois, config)

    for _ in range(30):
        brain.set_goal("shop", RoadNode(0, 0))
        node, hops, record = RoadNode(0, 0), 0, None
        while record is None:
            nxt = brain.choose_next_road(node)
            record = brain.on_node_arrived(node, nxt)
            node, hops = nxt, hops + 1
            assert hops <= 6
        assert record.steps == hops


def test_q_values_persist_across_goal_changes(corridor, corridor_pois, corridor_config):
    brain = QLearningBrain(corridor, corridor_pois, corridor_config)
    train_episodes(brain, "end", lambda: RoadNode(0, 0), 20)
    before = {node: row for node, row in brain.get_q_snapshot("end").items()}

    brain.set_goal("start", RoadNode(4, 0))
    run_episode(brain, "start", RoadNode(4, 0))
    for x in range(5):
        brain.set_goal("end", RoadNode(x, 0))

    after = brain.get_q_snapshot("end")
    assert set(before) <= set(after)
    for node, row in before.items():
        assert after[node] == row


def test_requesting_twice_without_arrival_fails_loudly(corridor, corridor_pois):
    brain = QLearningBrain(corridor, corridor_pois, QLearningConfig(seed=0))
    brain.set_goal("end", RoadNode(0, 0))
    brain.choose_next_road(RoadNode(0, 0))

    with pytest.raises(TransitionPendingError):
        brain.choose_next_road(RoadNode(0, 0))

    brain.set_goal("end", RoadNode(0, 0))
    assert brain.choose_next_road(RoadNode(0, 0)) == (1, 0)


def test_mismatched_arrival_is_dropped_without_update(corridor, corridor_pois, caplog):
    brain = QLearningBrain(corridor, corridor_pois, QLearningConfig(seed=0))
    brain.set_goal("end", RoadNode(0, 0))
    chosen = brain.choose_next_road(RoadNode(0, 0))

    with caplog.at_level(logging.WARNING):
        result = brain.on_node_arrived(RoadNode(2, 0), RoadNode(3, 0))

    assert result is None
    assert brain.pending is None
    assert brain.q_table.get("end", RoadNode(0, 0), chosen) == 0.0
    assert brain.q_table.get("end", RoadNode(2, 0), RoadNode(3, 0)) == 0.0
    assert brain.episode_steps == 0
    assert "does not match" in caplog.text
    assert brain.choose_next_road(RoadNode(0, 0)) == (1, 0)


def test_arrival_without_pending_choice_is_ignored(corridor, corridor_pois, caplog):
    brain = QLearningBrain(corridor, corridor_pois, QLearningConfig(seed=0))
    brain.set_goal("end", RoadNode(0, 0))

    with caplog.at_level(logging.WARNING):
        assert brain.on_node_arrived(RoadNode(0, 0), RoadNode(1, 0)) is None

    assert len(brain.q_table) == 0
    assert "no pending action" in caplog.text


def test_caller_supplied_reward_is_used(corridor, corridor_pois):
    config = QLearningConfig(learning_rate=0.5, discount_factor=0.9, epsilon=0.0, epsilon_min=0.0, seed=0)
    brain = QLearningBrain(corridor, corridor_pois, config)
    brain.set_goal("end", RoadNode(2, 0))
    chosen = brain.choose_next_road(RoadNode(2, 0))

    brain.on_node_arrived(RoadNode(2, 0), chosen, ArrivalInfo(goal_id="end", reward=2.0))

    assert brain.q_table.get("end", RoadNode(2, 0), chosen) == pytest.approx(1.0)
    assert brain.last_update["reward"] == 2.0


def test_goal_arrival_does_not_bootstrap():
    graph, pois = _short_corridor()
    config = QLearningConfig(learning_rate=0.5, reward_goal=4.0, epsilon=0.0, epsilon_min=0.0, seed=0)
    brain = QLearningBrain(graph, pois, config)
    brain.q_table.set("end", RoadNode(1, 0), RoadNode(0, 0), 100.0)

    record = run_episode(brain, "end", RoadNode(0, 0))

    assert record.reason == "goal"
    assert record.reached_goal
    assert record.steps == 1
    assert record.total_reward == pytest.approx(4.0)
    assert brain.q_table.get("end", RoadNode(0, 0), RoadNode(1, 0)) == pytest.approx(2.0)


def test_step_update_bootstraps_from_next_state(corridor, corridor_pois):
    config = QLearningConfig(learning_rate=0.5, discount_factor=0.9, epsilon=0.0, epsilon_min=0.0,
                             reward_step=-0.1, distance_reward_scale=0.0, seed=0)
    brain = QLearningBrain(corridor, corridor_pois, config)
    brain.q_table.set("end", RoadNode(1, 0), RoadNode(2, 0), 2.0)
    brain.set_goal("end", RoadNode(0, 0))

    brain.choose_next_road(RoadNode(0, 0))
    brain.on_node_arrived(RoadNode(0, 0), RoadNode(1, 0))

    # 0 + 0.5 * (-0.1 + 0.9 * 2.0 - 0)
    assert brain.q_table.get("end", RoadNode(0, 0), RoadNode(1, 0)) == pytest.approx(0.85)


def test_goal_flag_from_caller_ends_episode(corridor, corridor_pois):
    brain = QLearningBrain(corridor, corridor_pois, QLearningConfig(seed=0))
    brain.set_goal("end", RoadNode(0, 0))
    brain.choose_next_road(RoadNode(0, 0))

    record = brain.on_node_arrived(RoadNode(0, 0), RoadNode(1, 0), ArrivalInfo(is_goal=True))

    assert record is not None and record.reached_goal
    assert brain.episode_count == 1


def test_episode_history_is_bounded():
    graph, pois = _short_corridor()
    brain = QLearningBrain(graph, pois, QLearningConfig(max_episode_stats=3, seed=0))

    for _ in range(5):
        run_episode(brain, "end", RoadNode(0, 0))

    assert [ep.episode for ep in brain.episode_stats] == [2, 3, 4]
    assert brain.episode_count == 5
    assert brain.get_debug_info()["episode_stats"][-1].episode == 4


def test_epsilon_decays_to_floor():
    graph, pois = _short_corridor()
    brain = QLearningBrain(graph, pois, QLearningConfig(epsilon=0.4, epsilon_min=0.1, epsilon_decay=0.5, seed=0))

    records = [run_episode(brain, "end", RoadNode(0, 0)) for _ in range(5)]

    assert brain.epsilon == pytest.approx(0.1)
    assert records[0].epsilon_used == pytest.approx(0.4)
    assert records[1].epsilon_used == pytest.approx(0.2)


def test_no_move_without_neighbors_or_goal():
    graph = RoadGraph([RoadNode(0, 0), RoadNode(5, 5)])
    pois = PointsOfInterest()
    pois.add("far", RoadNode(5, 5))
    brain = QLearningBrain(graph, pois, QLearningConfig(seed=0))

    brain.set_goal("far", RoadNode(0, 0))
    assert brain.choose_next_road(RoadNode(0, 0)) is None
    assert brain.pending is None

    brain.set_goal("nowhere", RoadNode(0, 0))
    assert brain.choose_next_road(RoadNode(0, 0)) is None


def test_policy_snapshot_is_read_only(corridor, corridor_pois, corridor_config):
    brain = QLearningBrain(corridor, corridor_pois, corridor_config)
    train_episodes(brain, "end", lambda: RoadNode(0, 0), 50)
    states_before = len(brain.q_table)

    snapshot = {entry.node: entry for entry in brain.get_policy_snapshot("end")}

    assert len(brain.q_table) == states_before
    assert snapshot[RoadNode(3, 0)].best_action == (4, 0)
    assert snapshot[RoadNode(3, 0)].best_value > 0
    assert brain.get_policy_snapshot("start") == []


def test_exploration_margin_limits_actions():
    city = create_city()
    pois = city.points_of_interest
    bounded = QLearningBrain(city.graph, pois, QLearningConfig(exploration_margin=0, seed=0))
    free = QLearningBrain(city.graph, pois, QLearningConfig(seed=0))

    bounded.set_goal("shop", pois.resolve("home"))
    free.set_goal("shop", pois.resolve("home"))

    assert bounded.legal_actions(RoadNode(9, 7)) == [RoadNode(9, 8)]
    assert free.legal_actions(RoadNode(9, 7)) == [RoadNode(9, 8), RoadNode(9, 6)]


def test_debug_info_snapshot():
    graph, pois = _short_corridor()
    brain = QLearningBrain(graph, pois, QLearningConfig(seed=0))
    run_episode(brain, "end", RoadNode(0, 0))

    info = brain.get_debug_info()
    assert info["type"] == "q-learning"
    assert info["episodes"] == 1
    assert info["total_steps"] == 1
    assert info["episode_steps"] == 0
    assert info["last_update"]["is_goal"] is True


def test_distance_shaped_reward():
    reward = DistanceShapedReward(QLearningConfig(reward_goal=5.0, reward_step=-0.1, distance_reward_scale=0.2))
    distances = {RoadNode(0, 0): 0, RoadNode(1, 0): 1, RoadNode(2, 0): 2}

    assert reward(RoadNode(2, 0), RoadNode(1, 0), False, distances) == pytest.approx(0.1)
    assert reward(RoadNode(1, 0), RoadNode(2, 0), False, distances) == pytest.approx(-0.3)
    assert reward(RoadNode(1, 0), RoadNode(0, 0), True, distances) == pytest.approx(5.0)
    assert reward(RoadNode(7, 7), RoadNode(1, 0), False, distances) == pytest.approx(-0.1)


@pytest.mark.parametrize("field, value", [
    ("learning_rate", 0.0),
    ("discount_factor", 1.5),
    ("epsilon", -0.1),
    ("epsilon_decay", 0.0),
    ("max_episode_steps", 0),
    ("exploration_margin", -1),
])
def test_config_rejects_out_of_range_values(field, value):
    with pytest.raises(ValueError):
        QLearningConfig(**{field: value})


def test_config_rejects_epsilon_below_floor():
    with pytest.raises(ValueError):
        QLearningConfig(epsilon=0.01, epsilon_min=0.05)
    assert QLearningConfig(epsilon=0.05, epsilon_min=0.05).epsilon == 0.05
