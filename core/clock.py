"""
Simulation clock for the Brewing staking model.

On chain the block timestamp is supplied by the host. Here time only moves
when the simulation advances it, which keeps every reward calculation
reproducible.
"""


class Clock:
    """Monotonic simulated time source, in whole seconds."""

    def __init__(self, start_time=0):
        if start_time < 0:
            raise ValueError("Start time cannot be negative")
        self.current_time = int(start_time)

    def now(self):
        """Returns the current simulated timestamp."""
        return self.current_time

    def update_time(self, seconds):
        """
        Advances the clock by the given number of seconds.

        Args:
            seconds: Number of seconds to advance

        Returns:
            The new current time
        """
        if seconds < 0:
            raise ValueError("Time cannot move backwards")
        self.current_time += int(seconds)
        return self.current_time

    def set_time(self, timestamp):
        """Jumps the clock to an absolute timestamp that is not in the past."""
        if timestamp < self.current_time:
            raise ValueError(f"Cannot rewind clock from {self.current_time} to {timestamp}")
        self.current_time = int(timestamp)
        return self.current_time
