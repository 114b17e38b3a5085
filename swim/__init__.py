"""Change the published ports of a running container by recreating it from a snapshot."""
__version__ = "0.1.0"
