"""Config hash shared by the uniformity audit CSV and sample telemetry.

The hash MUST be computed identically in both locations.
"""
import hashlib
import json

from fairdice.config import settings


def get_config_hash() -> str:
    """
    Generate hash of the sampling-relevant configuration.

    Returns 16-char hex hash of config snapshot.
    Used for:
    - uniformity audit CSV config_hash column
    - sample_served telemetry event config_hash field
    """
    config_snapshot = {
        "protocol_version": settings.protocol_version,
        "dice_catalog": list(settings.dice_catalog),
        "system_modulus": settings.system_modulus,
    }
    canonical = json.dumps(config_snapshot, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()[:16]
