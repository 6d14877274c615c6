"""featuredash: backend for the features dashboard."""
