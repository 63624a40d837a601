"""wabridge HTTP application."""
