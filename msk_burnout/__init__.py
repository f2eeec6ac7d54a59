"""Musculoskeletal pain, burnout and depression risk among fast-food workers."""

__version__ = "0.1.0"
