#!/usr/bin/env python3
"""
Interactive Pendant Monitor.

Connects to the first WHB04B-family pendant, initializes its display and
prints every event. Jogging the wheel moves a simulated position that is
shown on the display. Press Ctrl+C to stop.
"""

import sys
import logging
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from mpg_pendant import (
    DisplayUpdate,
    PendantAxis,
    PendantConnection,
    PendantDisconnectedError,
    PendantError,
    find_single_pendant,
)
from mpg_pendant.device.connection import FAST_READ_TIMEOUT

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)

AXIS_SLOTS = {
    PendantAxis.X: "axis1", PendantAxis.A: "axis1",
    PendantAxis.Y: "axis2", PendantAxis.B: "axis2",
    PendantAxis.Z: "axis3", PendantAxis.C: "axis3",
}


def main():
    print("Looking for a pendant...")
    try:
        pendant = find_single_pendant()
    except PendantError as e:
        print(f"{e}. Is the receiver plugged in?")
        return

    print(f"Found pendant on {pendant.path}"
          + (f" (writes via {pendant.write_device.path})" if pendant.is_split else ""))

    # Fast reads keep display writes responsive while jogging
    conn = PendantConnection(pendant, read_timeout=FAST_READ_TIMEOUT)
    position = {"axis1": 0.0, "axis2": 0.0, "axis3": 0.0}

    try:
        stream = conn.open()
        conn.send_reset_sequence()
        conn.update_display(DisplayUpdate(feed_rate=1000, spindle_speed=12000))

        print("\nMonitoring events (Ctrl+C to stop)...")
        for state in stream:
            increment = state.feed.increment(conn.motion_mode)
            print(f"{state.button1.name:<14} axis={state.axis.name:<3} "
                  f"feed={state.feed.name:<10} jog={state.jog_delta:+d} "
                  f"step={increment.step_size} pct={increment.percent}")

            slot = AXIS_SLOTS.get(state.axis)
            if slot and state.jog_delta and increment.step_size:
                position[slot] += state.jog_delta * increment.step_size
                conn.update_display(DisplayUpdate(feed_rate=1000, spindle_speed=12000,
                                                  **position))

    except PendantDisconnectedError as e:
        print(f"\nPendant disconnected: {e}")
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    finally:
        print("\nDisconnecting...")
        conn.close()
        print("Done.")


if __name__ == "__main__":
    main()
