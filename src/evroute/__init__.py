"""Multi-stop EV route construction: directions stitching and planner contract."""

__version__ = "0.1.0"
