"""Domain layer - library lookups and the playback session."""
