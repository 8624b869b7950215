"""Remote development agent: sandboxed files, commands and terminals over HTTP."""

__version__ = "0.1.0"
