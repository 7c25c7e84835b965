"""
Configuration and Feature Flags for the StudioFlow core

Numeric tunables (zoom range, default viewports, rotation snapping,
connection-view grid) and boolean feature flags. Both are
read once from environment variables so a deployment can adjust them without
code changes.

Usage:
    from studioflow.config.settings import get_setting, is_enabled

    zoom = max(get_setting('min_zoom'), min(get_setting('max_zoom'), zoom))

    if is_enabled('warn_on_overlap'):
        notifier.warning("Overlap detected")

Environment Variables:
    STUDIOFLOW_MIN_ZOOM / STUDIOFLOW_MAX_ZOOM      - zoom clamp (pixels per meter)
    STUDIOFLOW_ROTATION_SNAP                       - rotation increment in degrees
    STUDIOFLOW_WARN_ON_OVERLAP=true/false          - surface overlap warnings
"""

import os
from typing import Dict


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() == 'true'


SETTINGS: Dict[str, float] = {
    # Viewport zoom (screen pixels per world meter)
    'min_zoom': _env_float('STUDIOFLOW_MIN_ZOOM', 10.0),
    'max_zoom': _env_float('STUDIOFLOW_MAX_ZOOM', 200.0),
    'wheel_zoom_in': 1.1,
    'wheel_zoom_out': 0.9,

    # Default viewports
    'layout_offset_x': 0.0,
    'layout_offset_y': 0.0,
    'layout_zoom': 50.0,
    'connection_offset_x': 200.0,
    'connection_offset_y': 150.0,
    'connection_zoom': 80.0,

    # Rotation handle
    'rotation_snap': _env_float('STUDIOFLOW_ROTATION_SNAP', 15.0),
    'rotation_handle_offset': 0.15,
    'rotation_handle_radius': 0.08,

    # Connection-view node grid
    'node_grid_size': 5.0,
    'node_grid_columns': 4,
    'node_grid_tolerance': 0.1,
}


FEATURE_FLAGS: Dict[str, bool] = {
    'warn_on_overlap': _env_flag('STUDIOFLOW_WARN_ON_OVERLAP', True),
}


def get_setting(name: str) -> float:
    """
    Look up a numeric tunable.

    Args:
        name: Setting name (e.g., 'min_zoom')

    Returns:
        Current value of the setting

    Raises:
        KeyError: If the setting name is not recognized
    """
    if name not in SETTINGS:
        available = ', '.join(SETTINGS.keys())
        raise KeyError(
            f"Unknown setting: '{name}'. "
            f"Available settings: {available}"
        )

    return SETTINGS[name]


def get_all_settings() -> Dict[str, float]:
    """Return a copy of every tunable and its current value."""
    return SETTINGS.copy()


def set_setting(name: str, value: float) -> None:
    """
    Programmatically override a tunable (for testing only).

    Raises:
        KeyError: If the setting name is not recognized
    """
    if name not in SETTINGS:
        available = ', '.join(SETTINGS.keys())
        raise KeyError(
            f"Unknown setting: '{name}'. "
            f"Available settings: {available}"
        )

    SETTINGS[name] = value


def is_enabled(flag: str) -> bool:
    """
    Check if a feature flag is enabled.

    Args:
        flag: Feature flag name (e.g., 'warn_on_overlap')

    Returns:
        True if flag is enabled, False otherwise

    Raises:
        KeyError: If flag name is not recognized

    Example:
        >>> is_enabled('warn_on_overlap')
        True  # Default

        >>> # After: export STUDIOFLOW_WARN_ON_OVERLAP=false
        >>> is_enabled('warn_on_overlap')
        False
    """
    if flag not in FEATURE_FLAGS:
        available = ', '.join(FEATURE_FLAGS.keys())
        raise KeyError(
            f"Unknown feature flag: '{flag}'. "
            f"Available flags: {available}"
        )

    return FEATURE_FLAGS[flag]


def get_all_flags() -> Dict[str, bool]:
    """Get all feature flags and their current state."""
    return FEATURE_FLAGS.copy()


def set_flag(flag: str, enabled: bool) -> None:
    """
    Programmatically set a feature flag (for testing only).

    Warning:
        This is for testing only. In production, use environment variables.
    """
    if flag not in FEATURE_FLAGS:
        available = ', '.join(FEATURE_FLAGS.keys())
        raise KeyError(
            f"Unknown feature flag: '{flag}'. "
            f"Available flags: {available}"
        )

    FEATURE_FLAGS[flag] = enabled
