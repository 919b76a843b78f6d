#!/usr/bin/env python3
"""
Kelvin - Entry point.

Keeps the color temperature and brightness of your Hue lights in
line with the time of day, and steps back when you change them.
"""

import argparse
import sys

from kelvin.errors import ConfigurationError
from kelvin.service import KelvinService


def print_status(service: KelvinService):
    """Print the automation state of all lights."""
    print("\n💡 Kelvin Status")
    print("=" * 72)
    print(f"{'ID':<4} {'Name':<24} {'Reachable':<10} {'On':<5} {'Automatic':<10} Target")
    for light in service.lights.values():
        target = str(light.target_light_state) if light.target_light_state else "-"
        print(
            f"{light.light_id:<4} {light.name[:24]:<24} {str(light.reachable):<10} "
            f"{str(light.on):<5} {str(light.automatic):<10} {target}"
        )


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Kelvin - Circadian color temperature for Hue lights"
    )
    parser.add_argument(
        "-c", "--config",
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Show the state of all lights and exit",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Update all lights once and exit",
    )

    args = parser.parse_args()

    try:
        service = KelvinService(config_path=args.config)
    except ConfigurationError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(1)

    if args.status or args.once:
        if not service.prepare():
            print("Failed to connect to Hue Bridge")
            sys.exit(1)

        if args.once:
            changed = service.poll_lights()
            print(f"Updated {changed} light(s)")
        else:
            for light in service.lights.values():
                light.refresh()
        print_status(service)

    else:
        # Normal service mode
        service.start()


if __name__ == "__main__":
    main()
