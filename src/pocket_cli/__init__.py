"""
Pocket: one command surface for many third-party services

Integration registry, credential readiness and guided setup for the pocket CLI.
"""

try:
    from importlib.metadata import version
    __version__ = version("pocket-cli")
except Exception:
    __version__ = "0.0.0"  # Fallback for development

__all__ = ["__version__"]
