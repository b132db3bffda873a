"""Core utilities: permissions, security, audit engine, notifications."""
