"""Simple YAML configuration loader for speak2image."""

import os
import copy
import yaml
from pathlib import Path
from typing import Dict, Any, List
import logging

from ..generation.prompt import DEFAULT_PLACEHOLDER, DEFAULT_SILENCE_SENTINELS

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    'paths': {
        'recorded_audio_folder': 'generated/recordings',
        'generated_visuals_folder': 'generated/images',
        'transcription_file': 'generated/transcripts.csv',
    },
    'audio': {
        'format': 'wav',
        'sample_rate': 44100,
        'channels': 1,
        'chunk_size': 1024,
        'minimum_recording_length': 1.5,
    },
    'timeouts': {
        'api': 120,
        'recording': 30,
    },
    'openai': {
        'base_url': 'https://api.openai.com/v1',
    },
    'ai': {
        'transcription': {'model': 'whisper-1'},
        'generation': {
            'model': 'dall-e-3',
            'size': '1024x1024',
            'quality': 'standard',
            'style': 'vivid',
            'placeholder': DEFAULT_PLACEHOLDER,
            'prompts': [],
            'prompt_index': 0,
        },
        'silence_sentinels': list(DEFAULT_SILENCE_SENTINELS),
    },
    'logging': {
        'level': 'INFO',
        'file_path': 'logs/speak2image.log',
        'console_output': True,
        'backup_count': 60,
    },
}

PATH_KEYS = (
    'paths.recorded_audio_folder',
    'paths.generated_visuals_folder',
    'paths.transcription_file',
    'logging.file_path',
)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class InstallationConfig:
    """speak2image configuration loader."""

    def __init__(self, config_path: str):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. Values it omits fall back to DEFAULTS.
        """
        self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if not loaded:
            raise ValueError("Configuration file is empty")
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")

        config = _merge(DEFAULTS, loaded)
        self._resolve_paths(config)
        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        for key_path in PATH_KEYS:
            section, key = key_path.split('.')
            value = config.get(section, {}).get(key)
            if value and not os.path.isabs(value):
                config[section][key] = str(config_dir / value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'timeouts.api').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'timeouts.recording')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_api_key(self) -> str:
        """Get the OpenAI API key from the config or the OPENAI_API_KEY variable."""
        api_key = self.get('openai.api_key') or os.environ.get('OPENAI_API_KEY')
        if not api_key:
            raise ValueError("OpenAI API key not configured (openai.api_key or OPENAI_API_KEY)")
        return api_key

    def get_prompt_template(self) -> str:
        """Get the active image prompt template."""
        prompts: List[str] = self.get('ai.generation.prompts') or []
        index = self.get('ai.generation.prompt_index', 0)
        if not prompts:
            raise ValueError("No prompt template configured under ai.generation.prompts")
        if not 0 <= index < len(prompts):
            raise ValueError(f"ai.generation.prompt_index {index} out of range ({len(prompts)} prompts)")
        return prompts[index]

    def get_silence_sentinels(self) -> List[str]:
        return list(self.get('ai.silence_sentinels') or [])
