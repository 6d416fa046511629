"""Disaster-response information portal backend."""
