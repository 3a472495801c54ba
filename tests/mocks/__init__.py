"""
Mock implementations for testing
"""

from .fake_s3 import FakeS3Client

__all__ = ["FakeS3Client"]
