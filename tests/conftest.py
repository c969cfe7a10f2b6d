import os

os.environ.setdefault('SDL_VIDEODRIVER', 'dummy')
os.environ.setdefault('PYGAME_HIDE_SUPPORT_PROMPT', '1')

import pytest

from arena.engine import Ball


class SequenceRNG:
    """Stands in for a RandomState; hands out fixed samples in order."""

    def __init__(self, samples):
        self.samples = list(samples)

    def random_sample(self):
        return self.samples.pop(0)


@pytest.fixture
def still_ball():
    def make(x, y, radius=6.0, vx=0.0, vy=0.0, **kwargs):
        return Ball(x=x, y=y, vx=vx, vy=vy, radius=radius, **kwargs)
    return make


@pytest.fixture
def sequence_rng():
    return SequenceRNG
