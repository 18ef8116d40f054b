import math

import numpy as np
import pytest
import vector

from photon_hbt.utils.kinematics import (
    OBSERVABLES,
    pair_frame,
    pair_observables,
    pair_observables_scalar
)


def test_identical_photons_have_zero_relative_momentum():
    qinv, qlong, qout, qside, kt = pair_observables_scalar((1.3, 0.4, 2.1), (1.3, 0.4, 2.1))
    assert qinv == 0.0
    assert qlong == 0.0
    assert qout == 0.0
    assert qside == 0.0
    assert kt == pytest.approx(1.3)


def test_transverse_pair_decomposition():
    # v1 = (1, 0, 0, 1), v2 = (0, 1, 0, 1)
    qinv, qlong, qout, qside, kt = pair_observables_scalar((1.0, 0.0, 0.0), (1.0, 0.0, math.pi / 2))
    assert qinv == pytest.approx(math.sqrt(2.0))
    assert qlong == pytest.approx(0.0, abs=1e-12)
    assert qout == pytest.approx(0.0, abs=1e-12)
    assert qside == pytest.approx(math.sqrt(2.0))
    assert kt == pytest.approx(math.sqrt(0.5))


def test_out_axis_follows_lab_frame_pair_momentum():
    # Same azimuth, different rapidity. The out axis is k/|k| in the lab, so it
    # carries a longitudinal component and qout picks up part of qlong.
    # A boost to the longitudinally co-moving frame would give qout = 0 here.
    sh, ch = math.sinh(1.0), math.cosh(1.0)
    qinv, qlong, qout, qside, kt = pair_observables_scalar((1.0, 0.0, 0.0), (1.0, 1.0, 0.0))

    kx, kz = 1.0, 0.5 * sh
    out_z = kz / math.hypot(kx, kz)
    assert qlong == pytest.approx(-sh)
    assert qout == pytest.approx(-sh * out_z)
    assert qside == pytest.approx(0.0, abs=1e-12)
    assert kt == pytest.approx(1.0)
    assert qinv == pytest.approx(math.sqrt(2.0 * (ch - 1.0)))


def test_swapping_photons_flips_projections_only():
    rng = np.random.default_rng(7)
    n = 200
    pt1, pt2 = rng.uniform(0.2, 3.0, n), rng.uniform(0.2, 3.0, n)
    eta1, eta2 = rng.uniform(-0.9, 0.9, n), rng.uniform(-0.9, 0.9, n)
    phi1, phi2 = rng.uniform(0, 2 * np.pi, n), rng.uniform(0, 2 * np.pi, n)

    forward = pair_observables(pt1, eta1, phi1, pt2, eta2, phi2)
    backward = pair_observables(pt2, eta2, phi2, pt1, eta1, phi1)

    np.testing.assert_allclose(backward["qinv"], forward["qinv"], rtol=1e-9, atol=1e-12)
    np.testing.assert_allclose(backward["kt"], forward["kt"], rtol=1e-9, atol=1e-12)
    for name in ("qlong", "qout", "qside"):
        np.testing.assert_allclose(backward[name], -forward[name], rtol=1e-9, atol=1e-12)


def test_qinv_is_non_negative_for_massless_photons():
    rng = np.random.default_rng(11)
    n = 500
    obs = pair_observables(
        rng.uniform(0.1, 5.0, n), rng.uniform(-0.9, 0.9, n), rng.uniform(-np.pi, np.pi, n),
        rng.uniform(0.1, 5.0, n), rng.uniform(-0.9, 0.9, n), rng.uniform(-np.pi, np.pi, n),
    )
    assert np.all(obs["valid"])
    assert np.all(obs["qinv"] >= -1e-9)


def test_pair_frame_axes():
    # k = (1, 0, 0.5 sinh(1)) for the pair (1, 0, 0), (1, 1, 0)
    k12 = vector.array({"x": [1.0], "y": [0.0], "z": [0.5 * math.sinh(1.0)]})
    uv_out, uv_side, uv_long = pair_frame(k12)
    kmag = math.hypot(1.0, 0.5 * math.sinh(1.0))

    np.testing.assert_allclose(uv_out.mag, [1.0])
    np.testing.assert_allclose(uv_long.mag, [1.0])
    # side is not a unit vector: |out x long| = kt / |k|
    np.testing.assert_allclose(uv_side.mag, [1.0 / kmag])
    # out keeps the longitudinal part of k
    np.testing.assert_allclose(uv_out.dot(uv_long), [0.5 * math.sinh(1.0) / kmag])
    np.testing.assert_allclose(uv_side.dot(uv_out), [0.0], atol=1e-12)


def test_vanishing_pair_momentum_is_flagged():
    obs = pair_observables([0.0, 1.0], [0.0, 0.0], [0.0, 0.0], [0.0, 1.0], [0.0, 0.0], [0.0, 0.5])
    assert obs["valid"].tolist() == [False, True]
    assert np.isnan(obs["qout"][0])
    assert np.isnan(obs["qside"][0])

    with pytest.raises(ValueError):
        pair_observables_scalar((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))


def test_empty_input():
    obs = pair_observables([], [], [], [], [], [])
    assert set(obs) == set(OBSERVABLES) | {"valid"}
    assert all(len(v) == 0 for v in obs.values())
