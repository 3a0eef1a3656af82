"""
Database module for Shikkha Hub

Contains the demo seed data.
"""
from app.db.seed_data import seed_all, clear_all

__all__ = ["seed_all", "clear_all"]
