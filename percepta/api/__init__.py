"""Percepta HTTP API."""
