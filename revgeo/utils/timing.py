"""Timing utilities for performance monitoring."""
import time
from revgeo.utils.logging import log_structured


class Timer:
    """Context manager for timing code blocks."""
    
    def __init__(self, operation: str, level: str = "debug", **fields):
        """
        Initialize timer.
        
        Args:
            operation: Name of the operation being timed
            level: Log level used when the block completes
            **fields: Extra structured fields attached to the log entry
        """
        self.operation = operation
        self.level = level
        self.fields = fields
        self.start = None
        self.elapsed = None
    
    def __enter__(self):
        self.start = time.perf_counter()
        return self
    
    def __exit__(self, *args):
        self.elapsed = time.perf_counter() - self.start
        log_structured(
            self.level,
            f"Operation {self.operation} completed",
            operation=self.operation,
            elapsed_seconds=self.elapsed,
            **self.fields
        )
