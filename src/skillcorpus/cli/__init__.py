"""Command-line interface for skillcorpus."""
