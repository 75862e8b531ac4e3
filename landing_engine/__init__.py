"""Conversational landing page generation service."""
