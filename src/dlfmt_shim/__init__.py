"""Command-line and library shim around the dlfmt formatter executable."""

__version__ = "0.1.0"
