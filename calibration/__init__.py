"""
Surface and ball calibration.
"""
