"""Channel Service - channel identity, membership, moderation and channel-scoped features."""

__version__ = "0.1.0"
