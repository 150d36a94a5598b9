"""Orbit and fly camera controller driven by mouse, wheel and keyboard input."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, Optional

import numpy as np

KEY_A = 65
KEY_D = 68
KEY_E = 69
KEY_Q = 81
KEY_S = 83
KEY_W = 87

RELEASE = 0
PRESS = 1
REPEAT = 2

_TRACKING_EPS = 1e-2


class ViewMode(Enum):
    """Which point stays fixed while the camera rotates."""

    EYE_FIXED = 0
    LOOK_AT_FIXED = 1


class KeyAction(IntEnum):
    """Movement actions that can be bound to keys."""

    MOVE_LEFT = 0
    MOVE_RIGHT = 1
    MOVE_UP = 2
    MOVE_DOWN = 3
    MOVE_FORWARD = 4
    MOVE_BACKWARD = 5


DEFAULT_KEY_BINDINGS: Dict[KeyAction, int] = {
    KeyAction.MOVE_LEFT: KEY_A,
    KeyAction.MOVE_RIGHT: KEY_D,
    KeyAction.MOVE_UP: KEY_E,
    KeyAction.MOVE_DOWN: KEY_Q,
    KeyAction.MOVE_FORWARD: KEY_W,
    KeyAction.MOVE_BACKWARD: KEY_S,
}


def _default_reference_frame() -> np.ndarray:
    # Columns: "right", "forward" and "up" of the scene in world space.
    return np.column_stack([
        (0.0, 0.0, 1.0),
        (1.0, 0.0, 0.0),
        (0.0, 1.0, 0.0),
    ])


def _normalize(v: np.ndarray) -> np.ndarray:
    return v / np.linalg.norm(v)


@dataclass
class Camera:
    """The camera state a controller manipulates.

    ``to_world_matrix`` maps camera space to world space for column vectors;
    its columns are right, up, backward and the eye position.
    """

    to_world_matrix: np.ndarray = field(default_factory=lambda: np.eye(4))
    aspect_ratio: float = 1.0
    lookat_distance: float = 1.0

    def __post_init__(self) -> None:
        self.to_world_matrix = np.array(self.to_world_matrix, dtype=np.float64)
        if self.to_world_matrix.shape != (4, 4):
            raise ValueError("expected a 4x4 matrix")


class CameraController:
    """Turns user input into camera motion around a reference frame."""

    def __init__(self) -> None:
        self.camera: Optional[Camera] = None

        self.zoom_speed = 0.5
        self.move_speed = 1.0
        self.rotation_speed = (math.pi / 2) / 180.0
        self.roll_speed = (math.pi / 2) / 180.0

        self.eye = np.zeros(3)
        self.look_at = np.zeros(3)
        self.lookat_distance = 1.0
        self.polar_angle = 0.0
        self.azimuth_angle = 0.0

        self.view_mode = ViewMode.LOOK_AT_FIXED
        self._prev_x = 0.0
        self._prev_y = 0.0
        self._tracking = False

        self.key_bindings: Dict[KeyAction, int] = dict(DEFAULT_KEY_BINDINGS)
        self._key_down: Dict[KeyAction, bool] = {action: False for action in KeyAction}

        self.reference_frame = _default_reference_frame()

    @property
    def current_camera(self) -> Optional[Camera]:
        return self.camera

    # UI callbacks

    def wheel_event(self, yscroll: float) -> None:
        self.zoom(self.zoom_speed * -yscroll)

    def key_event(self, key: int, action: int, mods: int) -> None:
        """Record key presses and releases; repeats are ignored."""
        if action not in (PRESS, RELEASE):
            return
        for binding, code in self.key_bindings.items():
            if code == key:
                self._key_down[binding] = action == PRESS

    def start_tracking(self, x: float, y: float) -> None:
        self._prev_x = x
        self._prev_y = y
        self._tracking = True

    def update_tracking(self, x: float, y: float) -> None:
        """Rotate the camera by the mouse motion since the last position."""
        if not self._tracking:
            self.start_tracking(x, y)
        dx = x - self._prev_x
        dy = y - self._prev_y
        self._prev_x = x
        self._prev_y = y

        self.polar_angle = min(max(self.polar_angle - self.rotation_speed * dy, _TRACKING_EPS),
                               math.pi - _TRACKING_EPS)
        self.azimuth_angle = self.azimuth_angle - self.rotation_speed * dx
        self._update_camera()

    def stop_tracking(self, x: float, y: float) -> None:
        self.update_tracking(x, y)
        self._tracking = False

    def tick(self, dt: float) -> None:
        """Apply movement for every held key over ``dt`` seconds."""
        step = dt * self.move_speed * self.lookat_distance
        down = self._key_down
        if down[KeyAction.MOVE_LEFT]:
            self.move_left(step)
        if down[KeyAction.MOVE_RIGHT]:
            self.move_right(step)
        if down[KeyAction.MOVE_UP]:
            self.move_up(step, True)
        if down[KeyAction.MOVE_DOWN]:
            self.move_down(step, True)
        if down[KeyAction.MOVE_FORWARD]:
            self.move_forward(step, True)
        if down[KeyAction.MOVE_BACKWARD]:
            self.move_backward(step, True)

    def resize_viewport(self, width: int, height: int) -> None:
        if self.camera is None:
            return
        self.camera.aspect_ratio = float(width) / float(height)

    # Commands

    def _camera_axis(self, index: int) -> np.ndarray:
        return self.camera.to_world_matrix[:3, index].copy()

    def zoom(self, amount: float) -> None:
        """Scale the distance to the look-at point by ``2 ** amount``."""
        if self.camera is None:
            return
        backward = self._camera_axis(2)
        self.lookat_distance *= 2.0 ** amount
        self.eye = self.look_at + self.lookat_distance * backward
        self._update_camera()

    def move(self, amount) -> None:
        """Translate eye and look-at point together."""
        delta = np.asarray(amount, dtype=np.float64)
        self.eye = self.eye + delta
        self.look_at = self.look_at + delta
        self._update_camera()

    def _backward(self, clip_to_frame: bool) -> np.ndarray:
        backward = self._camera_axis(2)
        if clip_to_frame:
            up_of_ref = self.reference_frame[:, 2]
            backward = _normalize(backward - np.dot(backward, up_of_ref) * up_of_ref)
        return backward

    def move_forward(self, amount: float, clip_to_frame: bool) -> None:
        if self.camera is None:
            return
        self.move(-amount * self._backward(clip_to_frame))

    def move_backward(self, amount: float, clip_to_frame: bool) -> None:
        if self.camera is None:
            return
        self.move(amount * self._backward(clip_to_frame))

    def move_left(self, amount: float) -> None:
        if self.camera is None:
            return
        self.move(-amount * self._camera_axis(0))

    def move_right(self, amount: float) -> None:
        if self.camera is None:
            return
        self.move(amount * self._camera_axis(0))

    def _up(self, clip_to_frame: bool) -> np.ndarray:
        if clip_to_frame:
            return self.reference_frame[:, 2].copy()
        return self._camera_axis(1)

    def move_up(self, amount: float, clip_to_frame: bool) -> None:
        if self.camera is None:
            return
        self.move(amount * self._up(clip_to_frame))

    def move_down(self, amount: float, clip_to_frame: bool) -> None:
        if self.camera is None:
            return
        self.move(-amount * self._up(clip_to_frame))

    # Initialisation

    def set_camera(self, camera: Optional[Camera]) -> None:
        """Control ``camera`` from now on, taking over its current pose."""
        self.camera = camera
        self._update_state()

    def set_reference_frame(self, reference_to_world) -> None:
        """Set the 3x3 frame whose third column is the orbit's up axis."""
        frame = np.array(reference_to_world, dtype=np.float64)
        if frame.shape != (3, 3):
            raise ValueError("expected a 3x3 matrix")
        self.reference_frame = frame
        self._update_state()

    # State synchronisation

    def _update_state(self) -> None:
        if self.camera is None:
            return
        self.lookat_distance = self.camera.lookat_distance
        to_world = self.camera.to_world_matrix
        backward_world = to_world[:3, 2]

        camera_to_ref = self.reference_frame.T @ to_world[:3, :3]
        backward_ref = camera_to_ref[:, 2]

        self.eye = to_world[:3, 3].copy()
        self.look_at = self.eye - backward_world * self.lookat_distance

        self.polar_angle = math.acos(min(max(float(backward_ref[2]), -1.0), 1.0))
        self.azimuth_angle = math.atan2(float(backward_ref[1]), float(backward_ref[0]))
        self._update_camera()

    def _update_camera(self) -> None:
        if self.camera is None:
            return
        sp, cp = math.sin(self.polar_angle), math.cos(self.polar_angle)
        backward_ref = np.array([sp * math.cos(self.azimuth_angle),
                                 sp * math.sin(self.azimuth_angle),
                                 cp])
        world_up_ref = np.array([0.0, 0.0, 1.0])
        right_ref = _normalize(np.cross(world_up_ref, backward_ref))
        up_ref = np.cross(backward_ref, right_ref)

        frame = self.reference_frame
        right_world = frame @ right_ref
        up_world = frame @ up_ref
        backward_world = frame @ backward_ref

        if self.view_mode == ViewMode.EYE_FIXED:
            self.look_at = self.eye - backward_world * self.lookat_distance
        elif self.view_mode == ViewMode.LOOK_AT_FIXED:
            self.eye = self.look_at + backward_world * self.lookat_distance

        to_world = np.eye(4)
        to_world[:3, 0] = right_world
        to_world[:3, 1] = up_world
        to_world[:3, 2] = backward_world
        to_world[:3, 3] = self.eye
        self.camera.to_world_matrix = to_world
        self.camera.lookat_distance = self.lookat_distance