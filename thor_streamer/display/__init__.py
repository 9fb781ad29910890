"""
Terminal display of decoded events.
"""

from thor_streamer.display.printer import format_event, print_event

__all__ = ["format_event", "print_event"]
