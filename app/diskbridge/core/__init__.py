"""Core workflows, persistence and configuration of diskbridge."""
