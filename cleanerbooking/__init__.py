"""
cleanerbooking - booking conflict and weekly availability checks for cleaners.
"""

__version__ = "0.1.0"
