"""Operator console for ChatWarden."""
