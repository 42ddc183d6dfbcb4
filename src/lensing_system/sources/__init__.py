# __init__.py
from .source_model import Source

__all__ = ['Source']
