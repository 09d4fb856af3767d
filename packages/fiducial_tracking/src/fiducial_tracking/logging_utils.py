"""fiducial_tracking 的默认 logger。

TagHypothesis / TagTracker 未注入 logger 时使用这里的实例（重置、创建、过期等事件）。
"""

from __future__ import annotations

import logging


def default_logger() -> logging.Logger:
    """获取名为 "fiducial_tracking" 的 logger；首次调用时挂一个 StreamHandler。"""

    logger = logging.getLogger("fiducial_tracking")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger
