"""Application configuration derived from the environment."""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Service settings; override with FAIRDICE_* environment variables."""

    model_config = ConfigDict(env_prefix="FAIRDICE_")

    # Server
    debug: bool = False

    # Protocol
    protocol_version: str = "1.0"

    # Common physical dice offered by the die selector
    dice_catalog: list[int] = [3, 4, 6, 8, 10, 12, 20, 30, 100]

    # OS randomness is treated as a bounded source with this modulus
    system_modulus: int = 2**32

    # Request limits
    max_sample_count: int = 1000
    max_value_digits: int = 2000


settings = Settings()
