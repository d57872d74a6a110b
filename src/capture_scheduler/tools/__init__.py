"""Command line tools for exercising the capture scheduler."""
