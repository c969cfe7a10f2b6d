"""
Headless evaluation — how well do simple rotation policies hold the balls in?

Policies:
  still   never rotate
  spin    rotate one step every tick
  random  random walk of left / right / none
  guard   turn the gap away from the ball closest to it

Metrics:
  1. Live ball count over time (fan-out of escapes)
  2. Escapes (score) over time
  3. Total kinetic energy (wall damping vs. jitter)
"""

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import os
import arena as A
from arena.engine import generate_session, relative_angle, ArenaConfig, EscapeEngine
from arena.metrics import ball_counts, compute_energy
from arena.renderer import Renderer, save_frames


MAX_BALLS = 150
N_STEPS = 1800
SEEDS = range(5)


def still(engine):
    return 0


def spin(engine):
    return 1


def make_random(seed):
    rng = np.random.RandomState(seed)
    return lambda engine: int(rng.choice([-1, 0, 1]))


def guard(engine, window=0.6):
    """Rotate away from the outermost ball when it drifts near the gap."""
    cfg = engine.config
    if not engine.balls:
        return 0
    ball = max(engine.balls, key=lambda b: (b.x - cfg.center_x)**2 + (b.y - cfg.center_y)**2)
    rel = relative_angle(ball.x, ball.y, cfg.center_x, cfg.center_y, engine.rotation)
    if rel <= window:
        return -1
    if rel >= 2 * np.pi - window:
        return 1
    return 0


def run_policy(name, policy_factory):
    sessions = []
    for seed in SEEDS:
        config = ArenaConfig(seed=seed)
        session = generate_session(config, n_steps=N_STEPS, policy=policy_factory(seed),
                                   max_balls=MAX_BALLS)
        sessions.append(session)
        counts = ball_counts(session['full_states'])
        momentum = np.linalg.norm(session['momentum'], axis=1)
        print(f"  [{name:6s}] seed={seed}  steps={len(counts) - 1:5d}  "
              f"escaped={session['score'][-1]:4d}  balls={counts[-1]:4d}  "
              f"|p| final={momentum[-1]:.3f}")
    return sessions


def plot(results):
    os.makedirs('results/plots', exist_ok=True)
    fig, axes = plt.subplots(1, 3, figsize=(18, 5))
    colors = {'still': 'gray', 'spin': 'tab:blue', 'random': 'tab:orange', 'guard': 'tab:green'}

    for name, sessions in results.items():
        for k, s in enumerate(sessions):
            label = name if k == 0 else None
            axes[0].plot(ball_counts(s['full_states']), color=colors[name], alpha=0.6, label=label)
            axes[1].plot(s['score'], color=colors[name], alpha=0.6, label=label)
            axes[2].plot(compute_energy(s['full_states']), color=colors[name], alpha=0.6, label=label)

    axes[0].set_title('Live balls')
    axes[1].set_title('Escaped (score)')
    axes[2].set_title('Total kinetic energy')
    for ax in axes:
        ax.set_xlabel('tick')
        ax.legend()
    plt.tight_layout()
    plt.savefig('results/plots/escape_policies.png')
    plt.close()


def snapshot(n_frames=8, every=60):
    """A few rendered frames of a guarded game."""
    engine = EscapeEngine(ArenaConfig(seed=A.SEED))
    engine.initialize()
    renderer = Renderer()
    frames = []
    for t in range(n_frames * every):
        engine.rotate(guard(engine))
        engine.step()
        if t % every == 0:
            frames.append(renderer.render(engine))
    save_frames(frames, 'results/frames')


def evaluate():
    policies = {
        'still': lambda seed: still,
        'spin': lambda seed: spin,
        'random': make_random,
        'guard': lambda seed: guard,
    }
    results = {}
    for name, factory in policies.items():
        print(f"Policy: {name}")
        results[name] = run_policy(name, factory)

    print("\nSummary (mean over seeds)")
    for name, sessions in results.items():
        escaped = np.mean([s['score'][-1] for s in sessions])
        survived = np.mean([s['time'] for s in sessions])
        print(f"  {name:6s}  escaped={escaped:7.1f}  time={survived:6.1f}s")

    plot(results)
    snapshot()
    print("Plots saved to results/plots/, frames to results/frames/")


if __name__ == "__main__":
    evaluate()
