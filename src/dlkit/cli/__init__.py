"""
dlkit command line interface.

Typer based front-end over the template engine, path helpers and header
filename resolver.
"""

__version__ = "0.3.0"
