"""diskbridge - attach physical Linux partitions to WSL and expose them on the host."""

__version__ = "0.4.0"
