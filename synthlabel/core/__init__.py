"""Randomise → render → project → export → package pipeline."""
