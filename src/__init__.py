"""cloudbatch: point-cloud annotation intake watcher."""

from cloudbatch.version import __version__

__all__ = ["__version__"]
