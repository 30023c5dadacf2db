"""
Test helpers for the bridgetx SDK.
"""
from .reconciler_creator import create_test_reconciler

__all__ = ["create_test_reconciler"]
