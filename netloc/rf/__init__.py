"""
RF (Radio Frequency) signal models.

Submodules:
    pathloss: Log-distance path-loss model, RSSI-to-distance inversion and
        measurement variance propagation
"""

from netloc.rf.pathloss import (
    DEFAULT_PATH_LOSS_MODEL,
    DEFAULT_RSSI_AT_ONE_METER,
    DEFAULT_RSSI_VARIANCE,
    PathLossModel,
    measurement_weights,
    rssi_from_distance,
    rssi_to_distance,
    rssi_variance_to_distance_variance,
    simulate_rssi,
    total_measurement_variance,
)

__all__ = [
    # Constants
    "DEFAULT_RSSI_AT_ONE_METER",
    "DEFAULT_RSSI_VARIANCE",
    "DEFAULT_PATH_LOSS_MODEL",
    # Model
    "PathLossModel",
    "rssi_to_distance",
    "rssi_from_distance",
    "rssi_variance_to_distance_variance",
    "total_measurement_variance",
    "measurement_weights",
    "simulate_rssi",
]
