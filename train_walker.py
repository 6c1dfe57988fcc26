#!/usr/bin/env python3
"""
Headless training script for the walker's Q-Learning brain.
The walker shuttles between home and shop while learning, then its greedy route
is compared with the breadth-first shortest path.
"""

import sys
import logging
import argparse

from citynav.domain.types import QLearningConfig
from citynav.domain.path_planner import find_path
from citynav.brains.qlearning import QLearningBrain
from citynav.app.walker import WalkerAgent
from citynav.app.trainer import train_between, greedy_route
from citynav.utils.city_factory import CityLayout, create_city


def main(argv=None):
    parser = argparse.ArgumentParser(description="Train the walker brain between home and shop")
    parser.add_argument("--episodes", type=int, default=300, help="Number of episodes to train")
    parser.add_argument("--grid-size", type=int, default=15, help="City size in cells")
    parser.add_argument("--road-step", type=int, default=3, help="Cells between parallel streets")
    parser.add_argument("--alpha", type=float, default=0.4, help="Learning rate")
    parser.add_argument("--gamma", type=float, default=0.9, help="Discount factor")
    parser.add_argument("--epsilon", type=float, default=0.3, help="Initial exploration rate")
    parser.add_argument("--epsilon-min", type=float, default=0.02, help="Exploration floor")
    parser.add_argument("--epsilon-decay", type=float, default=0.99, help="Per-episode epsilon decay")
    parser.add_argument("--max-steps", type=int, default=60, help="Hops before an episode times out")
    parser.add_argument("--margin", type=int, default=None, help="Exploration corridor margin in cells")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every episode")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    print("🧠 Walker Q-Learning Training")
    print("=" * 50)

    try:
        city = create_city(CityLayout(grid_size=args.grid_size, road_step=args.road_step))
        config = QLearningConfig(
            learning_rate=args.alpha,
            discount_factor=args.gamma,
            epsilon=args.epsilon,
            epsilon_min=args.epsilon_min,
            epsilon_decay=args.epsilon_decay,
            max_episode_steps=args.max_steps,
            exploration_margin=args.margin,
            seed=args.seed,
        )
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}")
        return 1

    pois = city.points_of_interest
    home, shop = pois.resolve("home"), pois.resolve("shop")
    print(f"📐 Grid: {city.grid_size}x{city.grid_size}, {len(city.graph)} street cells")
    print(f"🏠 Home: {home} → 🛒 Shop: {shop}")

    brain = QLearningBrain(city.graph, pois, config)
    walker = WalkerAgent(city.graph, brain, start_road=home, cell_size=city.layout.cell_size)

    print(f"\n⚙️  Training Configuration:")
    print(f"   Episodes: {args.episodes}")
    print(f"   Learning rate: {config.learning_rate}")
    print(f"   Epsilon: {config.epsilon} → {config.epsilon_min}")

    print(f"\n🚀 Starting training...")
    try:
        summary = train_between(walker, ["shop", "home"], args.episodes)
    except KeyboardInterrupt:
        print(f"\n⏹️  Training interrupted by user")
        return 1

    print(f"\n🎉 Training completed!")
    print(f"   Total episodes: {summary.total_episodes}")
    print(f"   Successful episodes: {summary.successful_episodes}")
    print(f"   Success rate: {summary.success_rate:.1%}")
    print(f"   Average reward: {summary.average_reward:.2f}")
    print(f"   Mean steps: {summary.mean_steps:.1f}")
    print(f"   Final epsilon: {summary.final_epsilon:.3f}")

    print(f"\n🧪 Testing final policy...")
    for goal_id, start in (("shop", home), ("home", shop)):
        learned = greedy_route(brain, goal_id, start)
        shortest = find_path(city.graph, start, pois.resolve(goal_id))
        if learned.success:
            print(f"✅ To {goal_id}: {learned.length} hops (shortest {shortest.length})")
        else:
            print(f"❌ To {goal_id}: greedy policy does not reach the goal (shortest {shortest.length})")

    return 0


if __name__ == "__main__":
    sys.exit(main())
