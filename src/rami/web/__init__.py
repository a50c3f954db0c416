"""Rami web layer."""
