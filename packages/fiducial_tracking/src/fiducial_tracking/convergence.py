"""收敛判定：时间下限 + 后验位置不确定度上限。

- 时间下限：样本太少时滤波器可能“看起来”很自信，必须先跟踪足够久。
- 不确定度上限：4 个角点的 1-sigma 位置不确定度都不能超过阈值（任一超过即未收敛）。
"""

from __future__ import annotations

import numpy as np

from fiducial_tracking.types import NUM_TAG_CORNERS


def is_converged(
    *,
    first_observation: bool,
    first_stamp_s: float,
    last_stamp_s: float,
    position_sigmas: np.ndarray,
    min_convergence_time_s: float,
    convergence_transl: float,
) -> bool:
    """判断假设是否收敛。

    Args:
        first_observation: 是否还没有收到任何观测。
        first_stamp_s: 首帧（或最近一次硬重置）时间戳（秒）。
        last_stamp_s: 最近一次观测时间戳（秒）。
        position_sigmas: (4,) 每个角点的 1-sigma 位置不确定度。
        min_convergence_time_s: 时间下限（秒）。
        convergence_transl: 1-sigma 上限。

    Returns:
        是否收敛。
    """

    if first_observation:
        return False

    if float(last_stamp_s) - float(first_stamp_s) < float(min_convergence_time_s):
        return False

    sig = np.asarray(position_sigmas, dtype=np.float64).reshape(-1)
    if sig.size != NUM_TAG_CORNERS:
        raise ValueError(f"position_sigmas must have {NUM_TAG_CORNERS} entries, got {sig.size}")

    return not bool(np.any(sig > float(convergence_transl)))
