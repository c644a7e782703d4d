"""Camera model and renderer interfaces."""
