"""Shared plumbing: result types, logging and configuration."""
