"""Slack Bridge - Socket Mode adapter between Slack and a chat-bot runtime."""

__version__ = "0.1.0"
