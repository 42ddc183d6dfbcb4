# __init__.py
from .errors import InvalidInputError
from .grid_ops import (
    as_grid_tensor,
    relocate_and_falloff,
    shift_field,
)
from .parallel import RowPartitionedPool, row_ranges

__all__ = ['InvalidInputError', 'as_grid_tensor', 'relocate_and_falloff',
           'shift_field', 'RowPartitionedPool', 'row_ranges']
