"""
picklesim: pickleball match simulation and DUPR rating core.
"""
__version__ = "0.1.0"
