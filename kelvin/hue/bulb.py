"""Single Hue bulb as seen by the light state machine."""

from typing import Optional

from loguru import logger

from .bridge import HueBridge

# Hue API limits
MIN_MIRED = 153
MAX_MIRED = 500
MIN_BRI = 1
MAX_BRI = 254

# Differences the bridge reports after a write without anybody touching the light
COLOR_TEMPERATURE_TOLERANCE = 2  # mired
BRIGHTNESS_TOLERANCE = 2  # bri steps


def kelvin_to_mired(kelvin: int) -> int:
    """Convert a color temperature in Kelvin to mired."""
    return round(1_000_000 / kelvin)


def percent_to_bri(percent: int) -> int:
    """Convert brightness 0-100 to the Hue 1-254 range."""
    return max(MIN_BRI, min(MAX_BRI, round(percent / 100 * MAX_BRI)))


def _within(value: Optional[int], expected: Optional[int], tolerance: int) -> bool:
    if value is None or expected is None:
        return False
    return abs(value - expected) <= tolerance


class HueLight:
    """Reads and writes the color temperature and brightness of one bulb."""

    def __init__(
        self,
        bridge: HueBridge,
        light_id: str,
        name: Optional[str] = None,
        transition_time: Optional[int] = None,
    ):
        """
        Initialize a bulb.

        Args:
            bridge: Connected HueBridge
            light_id: ID of the light on the bridge
            name: Human readable name
            transition_time: Fade time of writes in 1/10 seconds
        """
        self.bridge = bridge
        self.light_id = str(light_id)
        self.name = name or f"Light {light_id}"
        self.transition_time = transition_time

        self.reachable = False
        self.on = False
        self.color_mode: Optional[str] = None
        self.current_color_temperature: Optional[int] = None  # mired
        self.current_brightness: Optional[int] = None  # bri
        self.supports_color_temperature = False
        self.supports_brightness = False
        self.min_mired = MIN_MIRED
        self.max_mired = MAX_MIRED

        # Last values written by kelvin, None if never written
        self.written_color_temperature: Optional[int] = None  # mired
        self.written_brightness: Optional[int] = None  # bri

    def refresh_current_state(self) -> tuple[bool, bool]:
        """
        Read the bulb's state from the bridge.

        Returns:
            Tuple of (reachable, on).

        Raises:
            BulbReadError: If the bridge could not be asked.
        """
        self.update_current_state(self.bridge.get_light(self.light_id))
        return self.reachable, self.on

    def update_current_state(self, attributes: dict):
        """Take over the state from Hue API light attributes."""
        state = attributes.get("state", {})
        self.name = attributes.get("name", self.name)
        self.reachable = bool(state.get("reachable", False))
        self.on = bool(state.get("on", False))
        self.color_mode = state.get("colormode")
        self.current_color_temperature = state.get("ct")
        self.current_brightness = state.get("bri")
        self.supports_color_temperature = "ct" in state
        self.supports_brightness = "bri" in state

        ct_range = attributes.get("capabilities", {}).get("control", {}).get("ct", {})
        self.min_mired = ct_range.get("min", MIN_MIRED)
        self.max_mired = ct_range.get("max", MAX_MIRED)

    def _target_mired(self, color_temperature: Optional[int]) -> Optional[int]:
        if color_temperature is None or not self.supports_color_temperature:
            return None
        return max(self.min_mired, min(self.max_mired, kelvin_to_mired(color_temperature)))

    def _target_bri(self, brightness: Optional[int]) -> Optional[int]:
        if brightness is None or not self.supports_brightness:
            return None
        return percent_to_bri(brightness)

    def _in_color_temperature_mode(self) -> bool:
        # Bulbs without color support report no colormode at all
        return self.color_mode in (None, "ct")

    def has_state(self, color_temperature: Optional[int], brightness: Optional[int]) -> bool:
        """
        Check if the bulb shows the given state within tolerance.

        Fields that are None or that the bulb cannot render always match.
        """
        mired = self._target_mired(color_temperature)
        if mired is not None:
            if not self._in_color_temperature_mode():
                return False
            if not _within(self.current_color_temperature, mired, COLOR_TEMPERATURE_TOLERANCE):
                return False

        bri = self._target_bri(brightness)
        if bri is not None and not _within(self.current_brightness, bri, BRIGHTNESS_TOLERANCE):
            return False

        return True

    def has_changed(self) -> bool:
        """Check if somebody else changed the bulb since kelvin's last write."""
        if self.written_color_temperature is not None:
            if not self._in_color_temperature_mode():
                logger.debug(f"Light {self.name} left color temperature mode ({self.color_mode})")
                return True
            if not _within(
                self.current_color_temperature,
                self.written_color_temperature,
                COLOR_TEMPERATURE_TOLERANCE,
            ):
                logger.debug(
                    f"Light {self.name} color temperature changed from "
                    f"{self.written_color_temperature} to {self.current_color_temperature} mired"
                )
                return True

        if self.written_brightness is not None and not _within(
            self.current_brightness, self.written_brightness, BRIGHTNESS_TOLERANCE
        ):
            logger.debug(
                f"Light {self.name} brightness changed from "
                f"{self.written_brightness} to {self.current_brightness}"
            )
            return True

        return False

    def set_state(self, color_temperature: Optional[int], brightness: Optional[int]) -> bool:
        """
        Write color temperature (Kelvin) and brightness (percent) to the bulb.

        Returns:
            False if the bulb can render none of the given fields and
            nothing was sent.

        Raises:
            BulbWriteError: If the bridge rejected the command.
        """
        mired = self._target_mired(color_temperature)
        bri = self._target_bri(brightness)

        command = {}
        if mired is not None:
            command["ct"] = mired
        if bri is not None:
            command["bri"] = bri
        if not command:
            return False
        if self.transition_time is not None:
            command["transitiontime"] = self.transition_time

        self.bridge.set_light(self.light_id, command)

        if mired is not None:
            self.written_color_temperature = self.current_color_temperature = mired
            self.color_mode = "ct"
        if bri is not None:
            self.written_brightness = self.current_brightness = bri
        return True

    def __repr__(self) -> str:
        return (
            f"<HueLight {self.name} on={self.on} reachable={self.reachable} "
            f"ct={self.current_color_temperature} bri={self.current_brightness} "
            f"mode={self.color_mode}>"
        )
