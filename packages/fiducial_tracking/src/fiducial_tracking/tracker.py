"""多 Tag 的薄编排层：按 id 创建/转发/过期 TagHypothesis。

说明：
    - 每个 tag id 只维护一个假设（不做多假设数据关联）。
    - 过期依据是 `TagHypothesis.is_alive()`；本类只负责“调用并丢弃”，判定逻辑在假设内部。
    - 不同 id 的假设之间没有共享可变状态。

用法：
    tracker = TagTracker(camera, cfg)
    flags = tracker.update({7: corners_px}, stamp_s)
    for tag_id in tracker.converged_ids():
        pts = tracker.get(tag_id).filtered_points_3d()
"""

from __future__ import annotations

import logging
from typing import Mapping

import numpy as np

from fiducial_tracking.camera_model import PinholeCameraModel
from fiducial_tracking.config import TagHypothesisConfig
from fiducial_tracking.hypothesis import TagHypothesis
from fiducial_tracking.logging_utils import default_logger


class TagTracker:
    """按 tag id 管理 TagHypothesis 的生命周期。"""

    def __init__(
        self,
        camera: PinholeCameraModel,
        config: TagHypothesisConfig | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._camera = camera
        self._cfg = (config or TagHypothesisConfig()).validate()
        self._logger = logger or default_logger()
        self._hypotheses: dict[int, TagHypothesis] = {}

    def update(self, detections: Mapping[int, np.ndarray], stamp_s: float) -> dict[int, bool]:
        """喂入一帧的全部检测结果。

        Args:
            detections: tag_id -> (4,2) 像素角点。
            stamp_s: 本帧时间戳（秒）。

        Returns:
            tag_id -> 连续性标志（见 `TagHypothesis.update`），只包含本帧出现的 id。
        """

        out: dict[int, bool] = {}
        for tag_id, corners in detections.items():
            key = int(tag_id)
            hyp = self._hypotheses.get(key)
            if hyp is None:
                hyp = TagHypothesis(key, self._camera, self._cfg, logger=self._logger)
                self._hypotheses[key] = hyp
                self._logger.info("tag %d: new hypothesis", key)
            out[key] = hyp.update(corners, stamp_s)

        expired = [k for k, h in self._hypotheses.items() if not h.is_alive(stamp_s)]
        for k in expired:
            del self._hypotheses[k]
            self._logger.info("tag %d: no observation, hypothesis dropped", k)

        return out

    def hypotheses(self) -> dict[int, TagHypothesis]:
        return dict(self._hypotheses)

    def get(self, tag_id: int) -> TagHypothesis | None:
        return self._hypotheses.get(int(tag_id))

    def converged_ids(self) -> list[int]:
        return sorted(k for k, h in self._hypotheses.items() if h.converged())
