"""Configuration management for the reverse geocoder."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Search settings
DEFAULT_RADIUS: float = float(os.getenv("GEOCODER_RADIUS", "100"))  # meters
DEFAULT_LANGUAGE: str = os.getenv("GEOCODER_LANGUAGE", "")

# Cache settings
ADDRESS_CACHE_SIZE: int = int(os.getenv("ADDRESS_CACHE_SIZE", "1024"))
QUERY_CACHE_SIZE: int = int(os.getenv("QUERY_CACHE_SIZE", "256"))

# Maximum number of tile blocks (one per quad tree level) passed to a single entity query
QUAD_BATCH_SIZE: int = int(os.getenv("QUAD_BATCH_SIZE", "256"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
