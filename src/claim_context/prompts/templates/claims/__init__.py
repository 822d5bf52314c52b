"""Claim estimation prompt templates."""
