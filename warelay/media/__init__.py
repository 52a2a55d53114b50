"""Media marker handling."""

from warelay.media.parse import MediaSplit, split_media_from_output

__all__ = ["MediaSplit", "split_media_from_output"]
