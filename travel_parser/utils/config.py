import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dotenv import load_dotenv

from ..exceptions import ConfigurationError

load_dotenv()

DEFAULT_CONFIG: Dict[str, Any] = {
    'default_model': 'ollama-qwen3-32b',
    'temperature': 0.0,
    'max_tokens': 2048,
    'timeout': 300,
    'ollama_base_url': None,
    'classifier_max_chars': 2000,
    'extractor_max_chars': 4000,
    'validator_max_chars': 1000,
    'raw_text_storage_limit': 50_000,
    'save_intermediate_results': False,
    'results_dir': 'pipeline_results',
    'job_store': 'json',
    'jobs_dir': 'parser_jobs',
    'job_retries': 3,
    'inngest_app_id': 'travel-document-parser',
    'inngest_is_production': None,
    'remove_page_numbers': True,
    'marker': {},
    'models': {},
}


def load_config(config_path: Optional[str] = "config.yaml") -> Dict[str, Any]:
    """Load configuration from YAML file, layered over the defaults.

    A missing file is not an error: the defaults plus environment variables
    are enough to run the synchronous path against a local Ollama.
    """
    config = dict(DEFAULT_CONFIG)
    if config_path and Path(config_path).exists():
        try:
            with open(config_path, 'r') as file:
                loaded = yaml.safe_load(file) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config from {config_path}: {str(e)}") from e
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")
        config.update(loaded)

    return config


def inngest_event_key() -> Optional[str]:
    """Async dispatch is enabled only when an Inngest event key is configured"""
    return os.getenv("INNGEST_EVENT_KEY") or None
