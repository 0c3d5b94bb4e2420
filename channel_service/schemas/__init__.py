"""Pydantic request and response models for Channel Service."""
