"""Browser-automation relay: website URL in, generated design URL out via webhook."""

__version__ = "0.1.0"
