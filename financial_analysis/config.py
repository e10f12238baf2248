"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class FinanceConfig(BaseSettings):
    """Financial analysis service configuration"""
    
    # Database configuration
    database_url: str = "sqlite:///financial_analysis.db"  # memory:// for in-memory storage
    database_echo: bool = False  # Set to True for SQL logging
    
    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr
    
    # Reporting defaults
    low_balance_threshold: str = "1000.00"
    top_spenders_limit: int = 5
    
    # Apply deposits and withdrawals to Account.balance on insert.
    # Off by default: balance is maintained independently of the transaction log.
    maintain_balance: bool = False
    
    # Migration configuration
    auto_migrate: bool = True
    
    class Config:
        env_prefix = "FINANCE_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = FinanceConfig()


def get_config() -> FinanceConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> FinanceConfig:
    """Reload configuration from environment"""
    global config
    config = FinanceConfig()
    return config
