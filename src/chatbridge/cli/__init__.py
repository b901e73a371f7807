"""Command line interface for Chatbridge."""
