"""
Base image decoding.

The editor draws in the pixel space of the floor-plan image, so its
resolution bounds every click.
"""

from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np


@dataclass(frozen=True)
class BaseImage:
    """Decoded floor-plan image."""

    frame: np.ndarray

    @classmethod
    def decode(cls, data: bytes) -> "BaseImage":
        """
        Decode PNG/JPEG bytes.

        Raises:
            ValueError: If the bytes are not a decodable image
        """
        if not data:
            raise ValueError("Empty image data")
        buffer = np.frombuffer(data, dtype=np.uint8)
        frame = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
        if frame is None:
            raise ValueError("Could not decode image data")
        return cls(frame=frame)

    @property
    def frame_resolution_wh(self) -> Tuple[int, int]:
        height, width = self.frame.shape[:2]
        return width, height
