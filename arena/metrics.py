import numpy as np
from typing import Sequence


def ball_counts(full_states: Sequence[np.ndarray]) -> np.ndarray:
    return np.array([len(s) for s in full_states])


def compute_energy(full_states: Sequence[np.ndarray]) -> np.ndarray:
    """Total kinetic energy per step. full_states: list of (n_t, 6) arrays."""
    energy = []
    for s in full_states:
        vel = s[:, 2:4]
        energy.append((0.5 * s[:, 5, None] * vel ** 2).sum())
    return np.array(energy)


def compute_momentum(full_states: Sequence[np.ndarray]) -> np.ndarray:
    """|total momentum| per step. full_states: list of (n_t, 6) arrays."""
    momentum = []
    for s in full_states:
        p = (s[:, 5, None] * s[:, 2:4]).sum(axis=0)
        momentum.append(np.linalg.norm(p))
    return np.array(momentum)
