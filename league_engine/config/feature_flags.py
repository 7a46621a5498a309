"""
Feature Flags Configuration

Centralized feature flag management for the league engine.
All feature flags are loaded from environment variables.
"""
import os


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


class FeatureFlags:
    """
    Feature flags for the league engine.

    To add a new feature flag:
    1. Add it here as a class property
    2. Load it from environment variable
    3. Use it in your code
    """

    # Bracket: push a scored match's winner into the matches it feeds
    FEATURE_WINNER_ADVANCEMENT: bool = get_bool_env('FEATURE_WINNER_ADVANCEMENT', True)

    # Roster changes: admins may apply replacements/swaps/moves without review
    FEATURE_ADMIN_DIRECT_CHANGES: bool = get_bool_env('FEATURE_ADMIN_DIRECT_CHANGES', True)

    # Roster changes: re-check eligibility against current data when approving
    FEATURE_REVALIDATE_ON_APPROVAL: bool = get_bool_env('FEATURE_REVALIDATE_ON_APPROVAL', True)

    @classmethod
    def get_all_flags(cls) -> dict:
        """Get all feature flags as a dictionary."""
        return {
            key: value
            for key, value in cls.__dict__.items()
            if key.startswith('FEATURE_') and isinstance(value, bool)
        }


# Singleton instance for easy importing
feature_flags = FeatureFlags()
