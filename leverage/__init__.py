"""
Sequential Leverage Diagnostic Backend Package.

FastAPI service layer that identifies the single constraint limiting a small
business's growth from self-reported monthly figures, using deterministic
threshold rules, and serves the matching remediation plans.

Subpackages:
    - api: FastAPI route handlers (diagnostic, analytics proxy)
    - core: Configuration and dependencies
    - models: Pydantic schemas and enums
    - services: Metrics derivation, classification, action catalog, batch, analytics
"""

__version__ = "1.0.0"
