"""
Command line adapter
"""
from .app import create_app, run

__all__ = ["create_app", "run"]
