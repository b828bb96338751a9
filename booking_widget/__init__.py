"""Timezone-aware availability projection and booking flow for a public scheduling widget."""

__version__ = "0.1.0"
