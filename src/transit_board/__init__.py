"""Transit departure board built from a static GTFS feed and GTFS-RT delays."""

__version__ = "0.1.0"
