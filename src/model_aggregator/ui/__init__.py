"""UI module for the model aggregator.

The CLI can be run directly:
    python -m model_aggregator.ui.cli run "Your prompt" -m gpt-4o

Note: CLI components are not exported from __init__.py to avoid
module loading issues when running as a script.
"""

__all__ = []  # CLI is run directly, no exports needed
