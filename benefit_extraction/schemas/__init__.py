"""Pydantic schemas for requests, responses and model output."""
