# __init__.py
from .loaders import is_fits_file, read_convergence_map, read_fits_map, read_source_image

__all__ = ['is_fits_file', 'read_convergence_map', 'read_fits_map', 'read_source_image']
