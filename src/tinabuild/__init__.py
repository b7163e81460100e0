"""
tinabuild - Docker-friendly build helper for TinaCMS sites

Starts the TinaCMS dev server, waits until its port accepts connections,
runs the site build, then shuts the dev server down.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
