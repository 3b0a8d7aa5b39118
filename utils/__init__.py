"""Shared helpers"""
from .labels import format_labels

__all__ = ['format_labels']
