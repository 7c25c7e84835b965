"""Runtime settings and feature flags."""
