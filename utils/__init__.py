"""Utility helpers for the profile wizard."""
