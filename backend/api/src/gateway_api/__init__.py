"""FastAPI application for the Xendit payment gateway."""
