"""polite: mute the device during calendar events and weekly schedules."""

__version__ = "0.1.0"
