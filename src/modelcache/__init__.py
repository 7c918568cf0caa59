"""
modelcache - download-once cache for large binary model assets.

Fetches model files over HTTP(S) with streaming progress and keeps them in a
local SQLite store so later runs load them without touching the network.
"""

__version__ = "0.1.0"
