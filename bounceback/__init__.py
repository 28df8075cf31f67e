"""
BounceBack - ball bounce tracking against a calibrated surface.

Import the runtime pieces from their modules:

    from bounceback.session import Session
    from bounceback import api
"""

__version__ = "0.1.0"
