"""
Configuration management for Pod Log AI
"""

from pathlib import Path
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml
import os


class ClusterConfig(BaseSettings):
    """Kubernetes cluster access configuration"""

    model_config = SettingsConfigDict(env_prefix="K8S_")

    kubeconfig_path: Optional[str] = Field(default=None, description="Path to kubeconfig file")
    context: Optional[str] = Field(default=None, description="Kubernetes context to use")
    kubectl_path: str = Field(default="kubectl", description="kubectl binary to invoke")


class RetrievalConfig(BaseSettings):
    """Log retrieval worker pool configuration"""

    model_config = SettingsConfigDict(env_prefix="PODLOGAI_RETRIEVAL_")

    max_concurrency: int = Field(default=10, ge=1, description="Maximum in-flight cluster calls")
    queue_size: int = Field(default=100, ge=0, description="Event channel buffer size (0 = unbounded)")


class ClaudeConfig(BaseSettings):
    """Claude AI configuration"""

    model_config = SettingsConfigDict(env_prefix="ANTHROPIC_")

    api_key: Optional[str] = Field(default=None, description="Anthropic API key")
    model: str = Field(default="claude-3-5-sonnet-20241022", description="Claude model to use")
    max_tokens: int = Field(default=750, description="Maximum tokens per insight request")
    temperature: float = Field(default=0.1, description="Model temperature")
    timeout_seconds: float = Field(default=30.0, gt=0, description="Deadline for one insight request")
    max_input_chars: int = Field(default=10000, ge=1, description="Truncation limit for the prompt payload")


class AppConfig(BaseSettings):
    """Main application configuration"""

    model_config = SettingsConfigDict(env_prefix="PODLOGAI_", env_file=".env", extra="ignore")

    # Core settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=True, description="Render process logs as JSON")

    # Component configurations
    cluster: ClusterConfig = Field(default_factory=ClusterConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    claude: ClaudeConfig = Field(default_factory=ClaudeConfig)


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from YAML file and environment variables

    Args:
        config_path: Path to YAML configuration file

    Returns:
        AppConfig instance with loaded configuration
    """
    config_data = {}

    if config_path and Path(config_path).exists():
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}

    config = AppConfig(**config_data)

    if not config.claude.api_key:
        api_key = os.getenv('ANTHROPIC_API_KEY')
        if api_key:
            config.claude.api_key = api_key

    return config


def save_example_config(output_path: str) -> None:
    """
    Save an example configuration file

    Args:
        output_path: Path where to save the example config
    """
    example_config = {
        'debug': False,
        'log_level': 'INFO',
        'json_logs': True,
        'cluster': {
            'kubeconfig_path': '~/.kube/config',
            'context': 'my-cluster-context',
            'kubectl_path': 'kubectl'
        },
        'retrieval': {
            'max_concurrency': 10,
            'queue_size': 100
        },
        'claude': {
            'model': 'claude-3-5-sonnet-20241022',
            'max_tokens': 750,
            'temperature': 0.1,
            'timeout_seconds': 30,
            'max_input_chars': 10000
        }
    }

    with open(output_path, 'w') as f:
        yaml.dump(example_config, f, default_flow_style=False, indent=2)
