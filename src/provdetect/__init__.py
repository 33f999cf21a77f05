"""provdetect - classify domain infrastructure signals against a provider catalog."""

__version__ = "0.4.0"
