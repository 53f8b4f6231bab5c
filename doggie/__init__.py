"""SLCAN frames, commands and serializer, CAN bitrate tables, and an asyncio CAN-to-serial bridge core."""

__version__ = "0.1.0"
__all__ = ["can", "commands", "core", "frame", "serializer"]