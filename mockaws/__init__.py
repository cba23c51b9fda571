"""YAML configuration loading and in-memory queue and topic models for a local SQS/SNS mock."""

__version__ = "0.1.0"
__all__ = ["config", "models"]