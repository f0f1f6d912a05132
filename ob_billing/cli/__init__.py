"""Command-line interface for ob_billing."""
