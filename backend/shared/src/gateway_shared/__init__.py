"""Shared domain code for the Xendit payment gateway."""
