import os
from unittest.mock import Mock, patch

import pytest

from excel2html.config import CONVERTER_OPTIONS, ConverterConfig


@pytest.fixture
def clean_env():
    """EXCEL2HTML_* を含む環境変数を空にする"""
    with patch.dict(os.environ, {}, clear=True):
        yield


@pytest.fixture
def mock_config():
    """Mock converter configuration with default options"""
    config = Mock(spec=ConverterConfig)
    for name, (_env_name, default) in CONVERTER_OPTIONS.items():
        setattr(config, name, default)
    config.log_level = "INFO"
    config.html_lang = "en"
    config.options.side_effect = lambda: {
        name: getattr(config, name) for name in CONVERTER_OPTIONS
    }

    # Mock validation method
    config.validate.return_value = []

    return config
