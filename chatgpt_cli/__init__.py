"""
ask: a command-line chat client with a rolling conversation log.
"""

__version__ = "0.3.0"
