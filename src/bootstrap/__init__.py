"""
ブートストラップ関連の公開API。
"""

from .container import (
    BootstrapContainer,
    BootstrapContext,
    BootstrapError,
    ConfigBundle,
    InvalidConfigurationError,
    LoggingConfigurator,
    MetricsConfigurator,
    MissingConfigurationError,
)
from .config_loader import AppConfigModel, LoggingConfigModel, MetricsConfigModel, YamlConfigLoader
from .logging_setup import DictConfigLoggingConfigurator
from .metrics_setup import PrometheusMetricsConfigurator

__all__ = [
    "BootstrapContainer",
    "BootstrapContext",
    "BootstrapError",
    "ConfigBundle",
    "InvalidConfigurationError",
    "LoggingConfigurator",
    "MetricsConfigurator",
    "MissingConfigurationError",
    "DictConfigLoggingConfigurator",
    "PrometheusMetricsConfigurator",
    "YamlConfigLoader",
    "AppConfigModel",
    "LoggingConfigModel",
    "MetricsConfigModel",
]
