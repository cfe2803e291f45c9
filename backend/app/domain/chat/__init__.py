"""Conversations, messages and the delivery protocol."""
