"""Core runtime pieces shared by the access layer and the CLI."""
