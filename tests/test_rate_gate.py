"""Tests for the fixed inter-request delay"""

from rate_gate import RateGate


def test_first_call_is_not_delayed(sleeps):
    gate = RateGate(0.3, sleep=sleeps.append)
    gate.wait()
    assert sleeps == []


def test_every_following_call_is_delayed(sleeps):
    gate = RateGate(0.3, sleep=sleeps.append)
    for _ in range(4):
        gate.wait()
    assert sleeps == [0.3, 0.3, 0.3]
    assert gate.calls == 4


def test_reset_starts_new_sequence(sleeps):
    gate = RateGate(0.5, sleep=sleeps.append)
    gate.wait()
    gate.wait()
    gate.reset()
    gate.wait()
    assert sleeps == [0.5]


def test_zero_delay_never_sleeps(sleeps):
    gate = RateGate(0, sleep=sleeps.append)
    gate.wait()
    gate.wait()
    assert sleeps == []


def test_negative_delay_is_clamped():
    assert RateGate(-1).delay == 0.0
