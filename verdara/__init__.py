"""Verdara outdoor-recreation catalog service."""
