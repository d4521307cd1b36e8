"""Utility helpers for the payment gateway."""
