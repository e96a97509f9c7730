"""
InteractionController - Pointer/keyboard state machine

Bounded Context: Operator interaction with the map
Responsibilities:
  - Path drawing (pivot -> click finalizes a segment, pivot moves on)
  - Zone marking mode (clicks close zones instead of drawing)
  - Calibration anchoring (explicit key, automatic on cancel)
  - Key dispatch through a CommandRegistry

States:
  - Idle:        no pivot
  - DrawingPath: pivot set, next click finalizes a segment
  - zone_marking flag is orthogonal to both

No I/O happens here: the controller only mutates the MapModel stores and
raises a redraw flag for whoever renders.
"""

import logging
from enum import Enum
from typing import Optional, Tuple

from pathcal_zone import MapModel, Point, Segment, SegmentColor, CalibrationPoint, Zone

from .registry import CommandRegistry, CommandNotAvailableError

logger = logging.getLogger(__name__)


class DrawingState(str, Enum):
    IDLE = "idle"
    DRAWING_PATH = "drawing_path"


DEFAULT_TOGGLE_ZONE_KEY = "z"
DEFAULT_CANCEL_KEY = "x"
DEFAULT_CALIBRATE_KEY = "c"


class InteractionController:
    """
    Single owner of the transient UI state (pivot, pointer, mode, color).

    Example:
        controller = InteractionController(model)
        controller.click(Point(0, 0))       # pivot set
        controller.click(Point(100, 0))     # segment 0 finalized
        controller.handle_key("x")          # cancel: pivot cleared, anchor added
        controller.handle_key("z")          # zone marking on
        controller.click(Point(60, 0))      # zone closed at pixel 60
    """

    def __init__(
        self,
        model: MapModel,
        frame_resolution_wh: Optional[Tuple[int, int]] = None,
        toggle_zone_key: str = DEFAULT_TOGGLE_ZONE_KEY,
        cancel_key: str = DEFAULT_CANCEL_KEY,
        calibrate_key: str = DEFAULT_CALIBRATE_KEY,
    ):
        """
        Args:
            model: Stores mutated by the controller; segments it already
                holds are treated as drawn before a cancel
            frame_resolution_wh: Image (width, height); clicks outside are ignored
            toggle_zone_key: Key flipping zone marking
            cancel_key: Key ending the current segment run
            calibrate_key: Key adding a calibration point under the pointer
        """
        self.model = model
        self.frame_resolution_wh = frame_resolution_wh

        self.pivot: Optional[Point] = None
        self.pointer: Optional[Point] = None
        self.zone_marking = False
        self.color = SegmentColor.RED
        self.needs_redraw = False

        self._segments_at_last_cancel = len(model.path)
        self._has_cancelled = len(model.path) > 0

        self.key_registry = CommandRegistry()
        self.key_registry.register(toggle_zone_key, self.toggle_zone_marking, "Toggle zone marking")
        self.key_registry.register(cancel_key, self.cancel, "Stop drawing the current segment run")
        self.key_registry.register(calibrate_key, self.add_calibration, "Add a calibration point")

    @property
    def state(self) -> DrawingState:
        return DrawingState.IDLE if self.pivot is None else DrawingState.DRAWING_PATH

    @property
    def preview_segment(self) -> Optional[Tuple[Point, Point]]:
        """(pivot, pointer) while drawing, for a rubber-band preview."""
        if self.pivot is None or self.pointer is None or self.zone_marking:
            return None
        return self.pivot, self.pointer

    # ===== Pointer surface =====

    def click(self, point: Point) -> Optional[Segment | Zone]:
        """
        Handle a click.

        Returns:
            The Segment or Zone created by the click, if any
        """
        if not self._inside_image(point):
            logger.debug(f"Click outside image ignored: {point}")
            return None

        self.pointer = point

        if self.zone_marking:
            zone = self.model.zones.add_boundary(point)
            if zone is None:
                logger.debug(f"No segment under zone click {point}")
                return None
            self.needs_redraw = True
            if not zone.is_resolved:
                logger.warning(f"Zone {zone.id} created without meters (not enough calibration points)")
            else:
                logger.info(
                    f"Zone {zone.id} closed: px {zone.pixel_offset_absolute_start:.1f}"
                    f"-{zone.pixel_offset_absolute_end:.1f}, "
                    f"m {zone.meters_offset_absolute_start}-{zone.meters_offset_absolute_end}"
                )
            return zone

        if self.pivot is None:
            self.pivot = point
            return None

        segment = self.model.path.append_segment(self.pivot, point, self.color)
        self.pivot = point
        self.color = self.color.toggled()
        self.needs_redraw = True
        logger.debug(f"Segment {segment.index} added ({segment.length:.2f} px)")
        return segment

    def move(self, point: Point) -> None:
        """Track the pointer; a pending preview needs a redraw."""
        self.pointer = point
        if self.pivot is not None:
            self.needs_redraw = True

    # ===== Keyboard surface =====

    def handle_key(self, key: str) -> bool:
        """
        Dispatch a key press.

        Returns:
            True if the key is bound, False otherwise (no-op)
        """
        try:
            self.key_registry.execute(key)
            return True
        except CommandNotAvailableError:
            logger.debug(f"Unbound key: {key!r}")
            return False

    def toggle_zone_marking(self) -> bool:
        self.zone_marking = not self.zone_marking
        self.needs_redraw = True
        logger.info(f"Zone marking {'on' if self.zone_marking else 'off'}")
        return self.zone_marking

    def cancel(self) -> Optional[CalibrationPoint]:
        """
        End the current segment run.

        Clears the pivot and transient color. If segments were drawn since the
        previous cancel, anchors a calibration point: at the first segment's
        start the first time, at the latest segment's end afterwards.

        Returns:
            The automatically created CalibrationPoint, if any
        """
        self.pivot = None
        self.color = SegmentColor.RED
        self.needs_redraw = True

        path = self.model.path
        if len(path) <= self._segments_at_last_cancel:
            return None

        if not self._has_cancelled:
            anchor = self.model.calibration.add_at(0, path.cumulative_offset(0))
        else:
            last_index = len(path) - 1
            anchor = self.model.calibration.add_at(last_index, path.cumulative_offset(len(path)))

        self._has_cancelled = True
        self._segments_at_last_cancel = len(path)
        logger.info(f"Calibration point {anchor.id} anchored at pixel {anchor.pixel_offset_absolute:.1f}")
        return anchor

    def add_calibration(self) -> Optional[CalibrationPoint]:
        """Add a calibration point under the pointer (not while mid-segment)."""
        if self.pointer is None or self.pivot is not None:
            return None

        point = self.model.calibration.add(self.pointer)
        if point is None:
            logger.debug(f"No segment under calibration pointer {self.pointer}")
            return None

        self.needs_redraw = True
        logger.info(f"Calibration point {point.id} added at pixel {point.pixel_offset_absolute:.1f}")
        return point

    # ===== Lifecycle =====

    def reset(self) -> None:
        """Abort everything: path, calibration and zones are cleared."""
        self.model.reset()
        self.pivot = None
        self.color = SegmentColor.RED
        self._segments_at_last_cancel = 0
        self._has_cancelled = False
        self.needs_redraw = True

    def consume_redraw(self) -> bool:
        """Return and clear the redraw flag."""
        needed, self.needs_redraw = self.needs_redraw, False
        return needed

    def _inside_image(self, point: Point) -> bool:
        if self.frame_resolution_wh is None:
            return True
        width, height = self.frame_resolution_wh
        return 0 <= point.x < width and 0 <= point.y < height
