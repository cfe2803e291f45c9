"""Durable per-user notifications with best-effort live push."""
