"""Trigger/tracking state machine for the claudebot GitHub Action."""
