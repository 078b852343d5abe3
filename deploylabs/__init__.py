"""Deploylabs namespace package."""
