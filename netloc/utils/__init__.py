"""Shared utilities."""

from netloc.utils.result import Err, Ok, Result

__all__ = ["Ok", "Err", "Result"]
