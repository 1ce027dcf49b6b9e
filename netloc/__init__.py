"""Network-based position estimation from radio emitter observations.

This package estimates a device position from RSSI readings to geocoded
radio emitters (Wi-Fi access points, cell towers):
- coords: Geographic and local East-North-Up points and transforms
- rf: Log-distance path-loss model and measurement variance propagation
- estimators: Geometric median and weighted nonlinear least squares
- positioning: Trilateration, RANSAC and the multi-exponent estimator
- provider: Positioning-data cache, scanner contracts and location reporting
- eval: Position error statistics
"""

__version__ = "0.1.0"
