#!/usr/bin/env python3
"""Run a headless hexclaim game: the player only grows, bots play freely."""

from hexclaim.core.config import GameConfig, WinCondition, WinType
from hexclaim.core.engine import GameEngine


def main():
    config = GameConfig()
    win = WinCondition(type=WinType.WEALTH, target=60, bot_count=3)
    engine = GameEngine(win, config)

    print(f"=== hexclaim: {win.label} vs {win.bot_count} bots ===")
    print(f"Cycle capacity: {config.cycle_capacity}")
    print(f"Exchange rate: {config.exchange_rate} coins/move")
    print()

    print(f"{'Tick':>5} {'Agent':>8} {'Pos':>9} {'Rank':>4} {'Coins':>6} {'Earned':>6} {'Moves':>5}")
    print("-" * 50)

    max_ticks = 2000
    while engine.is_playing and engine.tick_count < max_ticks:
        if not engine.player.is_growing:
            engine.toggle_player_growth()
        engine.tick()
        if engine.tick_count % 100 == 0:
            for agent in engine.agents:
                pos = f"{agent.q},{agent.r}"
                print(
                    f"{engine.tick_count:5d} {agent.id:>8} {pos:>9} "
                    f"{agent.player_level:4d} {agent.coins:6d} "
                    f"{agent.total_coins_earned:6d} {agent.moves:5d}"
                )

    print()
    print(f"=== Final State (tick {engine.tick_count}): {engine.status.value} ===")
    print(f"Tiles discovered: {len(engine.grid)}")
    print("\nRecent events:")
    for line in list(engine.messages)[:10]:
        print(f"  {line}")


if __name__ == "__main__":
    main()
