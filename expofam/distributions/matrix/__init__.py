"""Matrix-valued distributions (exponential family)."""

from .wishart import InverseWishartFamily, WishartFamily

__all__ = ['WishartFamily', 'InverseWishartFamily']
