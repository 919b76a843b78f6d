"""Philips Hue Bridge communication."""

import os
import time
from typing import Optional

import requests
from loguru import logger
from phue import Bridge, PhueException, PhueRegistrationException

from kelvin.errors import BulbReadError, BulbWriteError


def _errors(response) -> list[str]:
    """Collect error descriptions from a (nested) Hue API response."""
    if isinstance(response, dict):
        error = response.get("error")
        return [error.get("description", str(error))] if error else []
    if isinstance(response, list):
        return [message for item in response for message in _errors(item)]
    return []


class HueBridge:
    """Handles communication with Philips Hue Bridge."""

    def __init__(
        self,
        ip_address: Optional[str] = None,
        username: Optional[str] = None,
        config_file_path: Optional[str] = None,
    ):
        """
        Initialize Hue Bridge connection.

        Args:
            ip_address: Bridge IP. If None, will try to auto-discover.
            username: Registered API user. If None, phue's stored one is used.
            config_file_path: Where phue stores the registered user.
        """
        self.ip_address = ip_address or os.getenv("HUE_BRIDGE_IP")
        self.username = username or os.getenv("HUE_USERNAME")
        self.config_file_path = config_file_path
        self._bridge: Optional[Bridge] = None

    def connect(self, retries: int = 3) -> bool:
        """
        Connect to the Hue Bridge.

        Args:
            retries: How often to wait for the link button.

        Returns:
            True if connection successful, False otherwise.
        """
        if not self.ip_address:
            logger.info("No IP address provided, attempting auto-discovery...")
            self.ip_address = self._discover_bridge()

        if not self.ip_address:
            logger.error("Could not find Hue Bridge. Please specify IP address.")
            return False

        try:
            logger.info(f"Connecting to Hue Bridge at {self.ip_address}")
            self._bridge = Bridge(
                self.ip_address,
                username=self.username,
                config_file_path=self.config_file_path,
            )
            self._bridge.connect()
            logger.success(f"Connected to Hue Bridge: {self.ip_address}")
            return True

        except PhueRegistrationException:
            self._bridge = None
            if retries <= 0:
                logger.error("Link button was not pressed. Giving up.")
                return False
            logger.warning("Press the link button on your Hue Bridge, then retry...")
            self._wait_for_button_press()
            return self.connect(retries - 1)

        except (OSError, ValueError, PhueException) as e:
            self._bridge = None
            logger.error(f"Failed to connect to Hue Bridge: {e}")
            return False

    def _discover_bridge(self) -> Optional[str]:
        """Attempt to auto-discover Hue Bridge on network."""
        try:
            response = requests.get("https://discovery.meethue.com", timeout=10)
            bridges = response.json()
            if bridges:
                ip = bridges[0].get("internalipaddress")
                logger.info(f"Discovered Hue Bridge at {ip}")
                return ip
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Auto-discovery failed: {e}")
        return None

    def _wait_for_button_press(self, timeout: int = 30):
        """Wait for user to press the link button."""
        logger.info(f"Waiting {timeout} seconds for button press...")
        time.sleep(timeout)

    @property
    def is_connected(self) -> bool:
        """Check if bridge is connected."""
        return self._bridge is not None

    def get_all_lights(self) -> dict[str, dict]:
        """
        Get the raw attributes of all lights.

        Returns:
            Dictionary mapping light_id to the Hue API attributes.
        """
        if not self._bridge:
            logger.error("Not connected to bridge")
            return {}

        try:
            lights = self._bridge.get_light() or {}
        except (OSError, PhueException) as e:
            logger.error(f"Failed to get lights: {e}")
            return {}

        if _errors(lights):
            logger.error(f"Failed to get lights: {', '.join(_errors(lights))}")
            return {}
        return {str(light_id): data for light_id, data in lights.items()}

    def get_light(self, light_id: str) -> dict:
        """
        Get the raw attributes of one light.

        Raises:
            BulbReadError: If the bridge could not be asked.
        """
        if not self._bridge:
            raise BulbReadError(light_id, "not connected to bridge")

        try:
            data = self._bridge.get_light(int(light_id))
        except (OSError, PhueException) as e:
            raise BulbReadError(light_id, str(e)) from e

        errors = _errors(data)
        if errors or not isinstance(data, dict):
            raise BulbReadError(light_id, ", ".join(errors) or "unexpected response")
        return data

    def set_light(self, light_id: str, command: dict):
        """
        Send a state command to one light.

        Raises:
            BulbWriteError: If the bridge rejected or never got the command.
        """
        if not self._bridge:
            raise BulbWriteError(light_id, "not connected to bridge")

        try:
            response = self._bridge.set_light(int(light_id), command)
        except (OSError, PhueException) as e:
            raise BulbWriteError(light_id, str(e)) from e

        errors = _errors(response)
        if errors:
            raise BulbWriteError(light_id, ", ".join(errors))
        logger.debug(f"Set light {light_id}: {command}")
