"""
Utility functions for Django settings configuration.

Environment-specific configuration is loaded with python-decouple so each
deployment (development, production) can keep its own .env file next to the
repository root.
"""

from pathlib import Path

from decouple import Config, RepositoryEnv
from decouple import config as default_config

ENV_FILES = {
    "development": ".env.dev",
    "production": ".env.production",
}


def load_environment_config(environment):
    """
    Load environment-specific configuration from the appropriate .env file.

    Args:
        environment (str): The target environment ('development', 'production')

    Returns:
        A decouple config callable bound to the environment file, or the
        default decouple config (process environment + .env) when the file
        is missing.
    """
    env_file_name = ENV_FILES.get(environment, ".env")
    env_file_path = Path(__file__).resolve().parent.parent.parent.parent / env_file_name

    if env_file_path.exists():
        print(f"✓ Loading environment: {environment} from {env_file_name}")
        return Config(RepositoryEnv(str(env_file_path)))

    print(f"✗ Warning: {env_file_name} not found, using default config")
    return default_config
