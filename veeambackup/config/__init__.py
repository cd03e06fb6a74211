"""Configuration module for the Veeam backup provider."""
from .settings import AWSConfig, ProviderConfig, load_settings

__all__ = ["AWSConfig", "ProviderConfig", "load_settings"]
