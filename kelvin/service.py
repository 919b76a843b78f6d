"""Main service orchestrating all components."""

import copy
import signal
import sys
import time
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

import yaml
from apscheduler.schedulers.background import BackgroundScheduler
from loguru import logger

from kelvin.api import APIServer
from kelvin.errors import BulbError, ConfigurationError
from kelvin.hue import HueBridge, HueLight
from kelvin.lights import Light
from kelvin.scheduling import FixedSunTimes, ScheduleConfig, build_schedule
from kelvin.storage import Database, EventLogger

DEFAULT_CONFIG = {
    "hue": {
        "bridge_ip": "",
        "username": None,
        "poll_interval": 1,
        "transition_time": None,
    },
    "location": {"sunrise": "07:00", "sunset": "19:00"},
    "schedules": [],
    "storage": {"database_path": "data/kelvin.db", "retention_days": 30},
    "logging": {
        "level": "INFO",
        "file_path": "logs/kelvin.log",
        "max_size_mb": 10,
        "backup_count": 5,
    },
    "api": {"enabled": False, "host": "127.0.0.1", "port": 8080},
}

# How often missing lights are looked for again
DISCOVERY_RETRY = timedelta(minutes=1)


def merge_config(user_config: Optional[dict]) -> dict:
    """Merge a user configuration over the defaults, section by section."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in (user_config or {}).items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values
    return config


class KelvinService:
    """Main service that keeps all scheduled lights on target."""

    def __init__(
        self,
        config_path: str = "config.yaml",
        config: Optional[dict] = None,
        bridge: Optional[HueBridge] = None,
        database: Optional[Database] = None,
    ):
        """
        Initialize the service.

        Args:
            config_path: Path to configuration file.
            config: Configuration dictionary, takes precedence over config_path.
            bridge: HueBridge to use instead of one built from the configuration.
            database: Database to use instead of one built from the configuration.
        """
        self.config = merge_config(config) if config is not None else self._load_config(config_path)
        self._setup_logging()

        hue_config = self.config["hue"]
        self.bridge = bridge or HueBridge(
            hue_config.get("bridge_ip"), username=hue_config.get("username")
        )
        self.database = database or Database(self.config["storage"]["database_path"])
        self.event_logger = EventLogger(self.database)
        location = self.config["location"]
        self.sun = FixedSunTimes(location.get("sunrise", "07:00"), location.get("sunset", "19:00"))
        self.schedule_configs = [
            ScheduleConfig.from_dict(entry) for entry in self.config["schedules"] or []
        ]

        self.lights: dict[str, Light] = {}
        self.scheduler = BackgroundScheduler()
        self._running = False
        self._last_poll: Optional[datetime] = None
        self._schedule_day: Optional[date] = None
        self._last_discovery: Optional[datetime] = None

    def _load_config(self, config_path: str) -> dict:
        """Load configuration from YAML file."""
        path = Path(config_path)
        if not path.exists():
            logger.warning(f"Config file not found: {config_path}, using defaults")
            return merge_config(None)

        with open(path, "r", encoding="utf-8") as f:
            try:
                return merge_config(yaml.safe_load(f))
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e

    def _setup_logging(self):
        """Configure logging."""
        log_config = self.config["logging"]

        # Remove default handler
        logger.remove()

        # Add console handler
        logger.add(
            sys.stderr,
            level=log_config.get("level", "INFO"),
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
        )

        # Add file handler
        if log_config.get("file_path"):
            log_path = Path(log_config["file_path"])
            log_path.parent.mkdir(parents=True, exist_ok=True)
            logger.add(
                str(log_path),
                level="DEBUG",
                rotation=f"{log_config.get('max_size_mb', 10)} MB",
                retention=log_config.get("backup_count", 5),
            )

    def discover_lights(self):
        """Create a Light for every bulb on the bridge not known yet."""
        transition_time = self.config["hue"].get("transition_time")
        for light_id, attributes in self.bridge.get_all_lights().items():
            if light_id in self.lights:
                continue
            hue_light = HueLight(
                self.bridge,
                light_id,
                name=attributes.get("name"),
                transition_time=transition_time,
            )
            hue_light.update_current_state(attributes)
            light = Light(light_id, hue_light.name, hue_light, listeners=[self.event_logger])
            self.lights[light_id] = light
            logger.info(f"💡 Found light {light.name} (ID {light_id})")

    def rebuild_schedules(self, now: Optional[datetime] = None):
        """Build today's schedules and attach them to their lights."""
        now = now or datetime.now()
        self._last_discovery = now
        self.discover_lights()

        sun_times = self.sun.sun_times(now.date())
        for schedule_config in self.schedule_configs:
            schedule = build_schedule(schedule_config, sun_times, now.date())
            for light_id in schedule_config.light_ids:
                light = self.lights.get(light_id)
                if light is None:
                    logger.warning(
                        f"Schedule '{schedule_config.name}' refers to unknown light {light_id}"
                    )
                    continue
                if light.schedule != schedule:
                    light.attach_schedule(schedule, now)
        self._schedule_day = now.date()

        unscheduled = [light.name for light in self.lights.values() if not light.scheduled]
        if unscheduled:
            logger.info(f"Lights without schedule: {', '.join(unscheduled)}")

    def prepare(self) -> bool:
        """Connect to the bridge, find lights and attach today's schedules."""
        if not self.bridge.connect():
            return False
        self.rebuild_schedules()
        return True

    def start(self):
        """Start the service."""
        logger.info("🚀 Starting Kelvin...")

        if not self.prepare():
            logger.error("Failed to connect to Hue Bridge. Exiting.")
            sys.exit(1)

        # Setup signal handlers
        signal.signal(signal.SIGINT, self._shutdown)
        signal.signal(signal.SIGTERM, self._shutdown)

        # Schedule jobs
        poll_interval = self.config["hue"]["poll_interval"]
        self.scheduler.add_job(
            self.poll_lights,
            "interval",
            seconds=poll_interval,
            id="poll_lights",
            max_instances=1,
            coalesce=True,
        )

        # Cleanup old data weekly
        self.scheduler.add_job(
            self._cleanup_data,
            "cron",
            day_of_week="sun",
            hour=4,
            id="weekly_cleanup",
        )

        self.scheduler.start()
        self._running = True

        if self.config["api"].get("enabled"):
            APIServer(
                self,
                host=self.config["api"]["host"],
                port=self.config["api"]["port"],
            ).start()

        logger.info(f"✅ Service started. Polling every {poll_interval}s")
        self._print_status()

        # Keep main thread alive
        while self._running:
            time.sleep(1)

    def poll_lights(self, now: Optional[datetime] = None) -> int:
        """
        Run one tick for every light.

        Args:
            now: Current time (defaults to now)

        Returns:
            Number of lights that were written to.
        """
        now = now or datetime.now()
        self._last_poll = now

        if self._schedules_due(now):
            try:
                self.rebuild_schedules(now)
            except ConfigurationError as e:
                logger.error(f"Could not rebuild schedules: {e}")

        changed = 0
        for light in list(self.lights.values()):
            try:
                if self._poll_light(light, now):
                    changed += 1
            except BulbError as e:
                logger.warning(f"💡 Light {light.name} - Could not update light state: {e}")
            except Exception as e:
                logger.exception(f"💡 Light {light.name} - Error polling light: {e}")

        return changed

    def _missing_lights(self) -> list[str]:
        return [
            light_id
            for schedule_config in self.schedule_configs
            for light_id in schedule_config.light_ids
            if light_id not in self.lights
        ]

    def _schedules_due(self, now: datetime) -> bool:
        """Check if schedules need a rebuild before this tick."""
        if self._schedule_day != now.date():
            logger.info("Schedules expired. Rebuilding...")
            return True

        if self._last_discovery and now - self._last_discovery < DISCOVERY_RETRY:
            return False
        missing = self._missing_lights()
        if missing:
            logger.debug(f"Looking for missing lights: {', '.join(missing)}")
        return bool(missing)

    def _poll_light(self, light: Light, now: datetime) -> bool:
        light.refresh()
        light.refresh_interval(now)
        light.refresh_target_state(now)
        return light.poll(now)

    def _cleanup_data(self):
        """Clean up old data."""
        retention = self.config["storage"]["retention_days"]
        logger.info(f"🧹 Cleaning up data older than {retention} days...")
        self.database.cleanup_old_events(retention)

    def _print_status(self):
        """Print current status."""
        stats = self.database.get_statistics()
        scheduled = sum(1 for light in self.lights.values() if light.scheduled)

        logger.info(f"📡 Connected lights: {len(self.lights)}")
        logger.info(f"🗓️ Scheduled lights: {scheduled}")
        logger.info(f"📊 Total events logged: {stats['total_events']}")

    def _shutdown(self, signum, frame):
        """Graceful shutdown."""
        logger.info("🛑 Shutting down...")
        self._running = False
        self.scheduler.shutdown(wait=False)
        logger.info("👋 Goodbye!")
        sys.exit(0)

    def get_status(self) -> dict:
        """Get current service status."""
        return {
            "running": self._running,
            "bridge_connected": self.bridge.is_connected,
            "last_poll": self._last_poll.isoformat() if self._last_poll else None,
            "lights": len(self.lights),
            "automatic_lights": sum(1 for light in self.lights.values() if light.automatic),
            "database_stats": self.database.get_statistics(),
            "events_this_session": self.event_logger.total_events_logged,
        }
