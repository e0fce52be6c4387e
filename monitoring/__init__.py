"""Monitoring scheduler: records, job registry and the scheduling service."""
