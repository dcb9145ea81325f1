"""
Utility untuk load konfigurasi JSON
"""
import json
import logging
import os
import shutil
from typing import Any, Dict

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Loader untuk file konfigurasi"""

    @staticmethod
    def load_config(config_path: str, template_path: str = None) -> Dict[str, Any]:
        """
        Load konfigurasi dari file

        Args:
            config_path: Path ke file config
            template_path: Path ke template (optional), disalin jika config belum ada

        Returns:
            Dict konfigurasi (kosong jika tidak ada file sama sekali)
        """
        if not os.path.exists(config_path) and template_path and os.path.exists(template_path):
            config_dir = os.path.dirname(config_path)
            if config_dir:
                os.makedirs(config_dir, exist_ok=True)
            shutil.copy(template_path, config_path)
            logger.info("Created %s from template %s", config_path, template_path)

        for path in (config_path, template_path):
            if path and os.path.exists(path):
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        return json.load(f)
                except ValueError as e:
                    logger.error("Invalid JSON in %s: %s", path, e)
                    return {}
        return {}

    @staticmethod
    def get(config: Dict[str, Any], key: str, default: Any = None) -> Any:
        """
        Ambil nilai bertingkat dengan key bertitik, mis. 'server.port'
        """
        value: Any = config
        for part in key.split('.'):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value
