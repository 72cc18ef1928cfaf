"""Fetch CloudWatch metric widget images across many AWS accounts."""

__version__ = "0.1.0"
