from __future__ import annotations

import cv2
import numpy as np
import pytest

from fiducial_tracking import CornerFilterBank, DynamicsModel


def _corners(cx: float, cy: float, h: float = 20.0) -> np.ndarray:
    return np.array(
        [[cx - h, cy - h], [cx + h, cy - h], [cx + h, cy + h], [cx - h, cy + h]],
        dtype=np.float64,
    )


def test_init_seeds_state_and_covariances() -> None:
    bank = CornerFilterBank()
    assert not bank.initialized

    bank.init(_corners(100.0, 100.0), dynamics_model=DynamicsModel.STATIC, measurement_noise=2.0, process_noise=0.5)

    assert bank.initialized
    np.testing.assert_allclose(bank.position_sigmas(), np.ones(4))
    for P in bank.error_covariances():
        np.testing.assert_allclose(P, np.eye(2))


def test_predict_and_correct_matches_scalar_kalman_gain() -> None:
    sigma_m = 2.0
    sigma_p = 0.5
    bank = CornerFilterBank()
    c0 = _corners(100.0, 100.0)
    bank.init(c0, dynamics_model=DynamicsModel.STATIC, measurement_noise=sigma_m, process_noise=sigma_p)

    c1 = _corners(110.0, 96.0)
    out = bank.predict_and_correct(c1, dt=0.1, dynamics_model=DynamicsModel.STATIC)

    p_prior = 1.0 + sigma_p**2
    gain = p_prior / (p_prior + sigma_m**2)
    np.testing.assert_allclose(out, c0 + gain * (c1 - c0), atol=1e-12)

    expected_var = (1.0 - gain) * p_prior
    np.testing.assert_allclose(bank.position_sigmas(), np.full(4, np.sqrt(expected_var)), atol=1e-12)


def test_reinit_replaces_all_filters() -> None:
    bank = CornerFilterBank()
    bank.init(_corners(0.0, 0.0), dynamics_model=DynamicsModel.STATIC, measurement_noise=1.0, process_noise=0.1)
    for _ in range(5):
        bank.predict_and_correct(_corners(0.0, 0.0), dt=0.1, dynamics_model=DynamicsModel.STATIC)
    assert float(bank.position_sigmas().max()) < 1.0

    bank.init(_corners(50.0, 50.0), dynamics_model=DynamicsModel.STATIC, measurement_noise=1.0, process_noise=0.1)

    np.testing.assert_allclose(bank.position_sigmas(), np.ones(4))
    # 观测与状态一致时，后验位置不动。
    out = bank.predict_and_correct(_corners(50.0, 50.0), dt=0.1, dynamics_model=DynamicsModel.STATIC)
    np.testing.assert_allclose(out, _corners(50.0, 50.0))


def test_constant_velocity_fails_fast() -> None:
    bank = CornerFilterBank()
    with pytest.raises(NotImplementedError):
        bank.init(_corners(0.0, 0.0), dynamics_model=DynamicsModel.CONSTANT_VELOCITY, measurement_noise=1.0, process_noise=1.0)
    assert not bank.initialized

    bank.init(_corners(0.0, 0.0), dynamics_model=DynamicsModel.STATIC, measurement_noise=1.0, process_noise=1.0)
    with pytest.raises(NotImplementedError):
        bank.predict_and_correct(_corners(0.0, 0.0), dt=0.1, dynamics_model=DynamicsModel.CONSTANT_VELOCITY)


def test_wrong_corner_count_raises() -> None:
    bank = CornerFilterBank()
    with pytest.raises(ValueError):
        bank.init(np.zeros((3, 2)), dynamics_model=DynamicsModel.STATIC, measurement_noise=1.0, process_noise=1.0)

    bank.init(_corners(0.0, 0.0), dynamics_model=DynamicsModel.STATIC, measurement_noise=1.0, process_noise=1.0)
    with pytest.raises(ValueError):
        bank.predict_and_correct(np.zeros((8,)), dt=0.1, dynamics_model=DynamicsModel.STATIC)


def test_predict_and_correct_before_init_raises() -> None:
    bank = CornerFilterBank()
    with pytest.raises(RuntimeError):
        bank.predict_and_correct(_corners(0.0, 0.0), dt=0.1, dynamics_model=DynamicsModel.STATIC)


def _raw_static_kf(position: np.ndarray, sigma_m: float, sigma_p: float) -> cv2.KalmanFilter:
    kf = cv2.KalmanFilter(2, 2, 0, cv2.CV_64F)
    kf.transitionMatrix = np.eye(2)
    kf.measurementMatrix = np.eye(2)
    kf.processNoiseCov = sigma_p**2 * np.eye(2)
    kf.measurementNoiseCov = sigma_m**2 * np.eye(2)
    kf.errorCovPost = np.eye(2)
    kf.statePost = np.asarray(position, dtype=np.float64).reshape(2, 1).copy()
    return kf


def test_bank_matches_opencv_kalman_filter_over_noisy_sequence() -> None:
    sigma_m, sigma_p = 1.5, 0.2
    rng = np.random.default_rng(7)
    c0 = _corners(320.0, 240.0)

    bank = CornerFilterBank()
    bank.init(c0, dynamics_model=DynamicsModel.STATIC, measurement_noise=sigma_m, process_noise=sigma_p)
    raw = [_raw_static_kf(c0[i], sigma_m, sigma_p) for i in range(4)]

    for k in range(20):
        z = c0 + rng.normal(scale=sigma_m, size=(4, 2))
        out = bank.predict_and_correct(z, dt=0.033 * (k + 1), dynamics_model=DynamicsModel.STATIC)

        for i, kf in enumerate(raw):
            kf.predict()
            expected = np.asarray(kf.correct(z[i].reshape(2, 1)), dtype=np.float64).reshape(-1)
            np.testing.assert_allclose(out[i], expected, atol=1e-12)
            np.testing.assert_allclose(bank.error_covariances()[i], np.asarray(kf.errorCovPost), atol=1e-12)


def test_static_update_does_not_depend_on_dt() -> None:
    rng = np.random.default_rng(3)
    c0 = _corners(100.0, 50.0)
    obs = [c0 + rng.normal(scale=2.0, size=(4, 2)) for _ in range(10)]

    results = []
    for dt in (0.001, 0.1, 5.0):
        bank = CornerFilterBank()
        bank.init(c0, dynamics_model=DynamicsModel.STATIC, measurement_noise=2.0, process_noise=0.05)
        for z in obs:
            out = bank.predict_and_correct(z, dt=dt, dynamics_model=DynamicsModel.STATIC)
        results.append((out, bank.position_sigmas()))

    for out, sig in results[1:]:
        np.testing.assert_array_equal(out, results[0][0])
        np.testing.assert_array_equal(sig, results[0][1])
