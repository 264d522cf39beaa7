"""
Data models for the shortlink application.

This module imports and exports all SQLModel models used in the application.
"""

from sqlmodel import SQLModel

from shortlink.models.link import Link, LinkBase, LinkCreate

__all__ = [
    "SQLModel",
    "Link",
    "LinkBase",
    "LinkCreate",
]
