"""Utility helpers for the notice relayer."""
