# =============================================================================
# Deployment Lineage Shared Libraries
# =============================================================================
# This package contains shared libraries for deployment lineage tracking.
# See individual sub-packages for detailed documentation.
# =============================================================================

"""
Deployment lineage shared libraries.

Sub-packages:
- models: Pydantic data models, stage events and settings
- lineage: Correlation engine, record store and self-test
"""

__version__ = "0.1.0"
