import numpy as np
import pytest

import arena as A
from arena.engine import ArenaConfig, Ball, EscapeEngine, generate_session
from arena.metrics import ball_counts, compute_energy, compute_momentum


def quiet_engine(seed=0):
    return EscapeEngine(ArenaConfig(seed=seed, jitter_probability=0.0))


def resting(x, y, ball_id):
    return Ball(x=x, y=y, vx=0.0, vy=0.0, radius=6.0, ball_id=ball_id)


def escaping(angle, ball_id):
    return resting(200.0 + 151.0 * np.cos(angle), 200.0 + 151.0 * np.sin(angle), ball_id)


def test_initialize_spawns_one_batch():
    engine = quiet_engine()
    balls = engine.initialize()
    assert len(balls) == A.BALLS_PER_SPAWN
    assert [b.ball_id for b in balls] == [0, 1, 2]
    assert (engine.rotation, engine.time, engine.score) == (0.0, 0.0, 0)


def test_initialize_copies_given_balls():
    given = [resting(200.0, 200.0, 4)]
    balls = quiet_engine().initialize(balls=given)
    assert balls == given
    assert balls[0] is not given[0]


@pytest.mark.parametrize("angles", [[0.0], [0.07, -0.07]])
def test_spawn_fan_out(angles):
    engine = quiet_engine()
    k = len(angles)
    escapees = [escaping(a, i) for i, a in enumerate(angles)]
    engine.initialize(balls=escapees + [resting(200.0, 200.0, 10), resting(150.0, 200.0, 11)])
    before = len(engine.balls)

    escaped = engine.step()

    assert len(escaped) == k
    assert len(engine.balls) - before == 2 * k
    assert engine.score == k
    assert len(engine.escape_log) == k
    assert [e['ball_id'] for e in engine.escape_log] == list(range(k))
    new_ids = sorted(b.ball_id for b in engine.balls if b.ball_id > 11)
    assert new_ids == list(range(12, 12 + 3 * k))
    assert not any(b.escaped for b in engine.balls)


def test_rotate_steps_and_validation():
    engine = quiet_engine()
    engine.rotate(1)
    engine.rotate(1)
    engine.rotate(-1)
    engine.rotate(0)
    assert engine.rotation == pytest.approx(A.ROTATION_STEP)
    with pytest.raises(ValueError):
        engine.rotate(2)


def test_rotation_opens_the_gap_where_the_ball_is():
    engine = quiet_engine()
    engine.initialize(balls=[escaping(np.pi / 2, 0)])
    # 16 steps put π/2 within half a gap of the rotation
    for _ in range(16):
        engine.rotate(1)
    escaped = engine.step()
    assert [b.ball_id for b in escaped] == [0]


def test_ball_facing_wall_bounces_instead():
    engine = quiet_engine()
    engine.initialize(balls=[escaping(np.pi / 2, 0)])
    assert engine.step() == []
    assert engine.score == 0
    assert len(engine.balls) == 1


def test_time_is_monotonic():
    engine = quiet_engine()
    engine.initialize()
    engine.step(0.5)
    engine.step(0.0)
    engine.step()
    assert engine.time == pytest.approx(0.5 + A.FRAME_DT)
    assert engine.n_steps == 3
    with pytest.raises(ValueError):
        engine.step(-0.1)


def test_seeded_sessions_match():
    a, b = EscapeEngine(ArenaConfig(seed=3)), EscapeEngine(ArenaConfig(seed=3))
    a.initialize()
    b.initialize()
    for _ in range(50):
        a.step()
        b.step()
    assert np.array_equal(a.get_full_state(), b.get_full_state())


def test_state_access():
    engine = quiet_engine()
    engine.initialize()
    assert engine.get_state().shape == (3, 4)
    full = engine.get_full_state()
    assert full.shape == (3, 6)
    assert np.array_equal(full[:, 4], full[:, 5])

    engine.set_state(np.zeros((3, 4)))
    assert all((b.x, b.vy) == (0.0, 0.0) for b in engine.balls)
    with pytest.raises(AssertionError):
        engine.set_state(np.zeros((2, 4)))

    engine.initialize(balls=[])
    assert engine.get_state().shape == (0, 4)
    assert engine.total_kinetic_energy() == 0


def test_generate_session_bookkeeping():
    session = generate_session(ArenaConfig(seed=1), n_steps=300,
                               policy=lambda engine: 1)
    counts, score = session['counts'], session['score']
    assert len(counts) == 301
    assert np.all(np.diff(score) >= 0)
    # Every escape nets two extra balls
    assert np.array_equal(counts, A.BALLS_PER_SPAWN + 2 * score)
    assert np.array_equal(ball_counts(session['full_states']), counts)
    assert session['rotation'][-1] == pytest.approx(300 * A.ROTATION_STEP)
    assert np.allclose(compute_energy(session['full_states']), session['energy'])
    assert session['momentum'].shape == (301, 2)
    assert np.allclose(compute_momentum(session['full_states']),
                       np.linalg.norm(session['momentum'], axis=1))
    assert len(session['escapes']) == score[-1]
    assert session['time'] == pytest.approx(300 * A.FRAME_DT)


def test_generate_session_stops_past_max_balls():
    session = generate_session(ArenaConfig(seed=2), n_steps=50, max_balls=2)
    assert len(session['counts']) == 2


def test_metrics_handle_empty_steps():
    states = [np.zeros((0, 6)),
              np.array([[0.0, 0.0, 1.0, 0.0, 6.0, 6.0],
                        [0.0, 0.0, -0.5, 0.0, 8.0, 8.0]])]
    assert np.allclose(compute_energy(states), [0.0, 3.0 + 1.0])
    assert np.allclose(compute_momentum(states), [0.0, 2.0])
    assert list(ball_counts(states)) == [0, 2]
