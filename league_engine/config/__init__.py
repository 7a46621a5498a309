from .feature_flags import FeatureFlags, feature_flags

__all__ = ["FeatureFlags", "feature_flags"]
