"""syncmate -- push edited workspace files to a remote host with rsync."""

__version__ = "0.4.0"
