# __init__.py
from .gauss_kernel import GaussKernel, gaussian_blur

__all__ = ['GaussKernel', 'gaussian_blur']
