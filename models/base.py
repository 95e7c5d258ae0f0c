import enum


# ============================================================================
# ENUMS
# ============================================================================

class SourceType(str, enum.Enum):
    """Data source types"""
    STACKOVERFLOW = "stackoverflow"
    GITHUB = "github"
