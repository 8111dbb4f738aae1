"""
設定管理モジュール

HTML変換オプションを環境変数（.env対応）から読み込む
"""

import logging
import os

from dotenv import load_dotenv

# .envファイルを読み込み
load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

# 変換オプション名 -> (環境変数名, デフォルト値)
CONVERTER_OPTIONS: dict[str, tuple[str, bool]] = {
    "output_column_headers": ("EXCEL2HTML_OUTPUT_COLUMN_HEADERS", True),
    "output_hidden_columns": ("EXCEL2HTML_OUTPUT_HIDDEN_COLUMNS", False),
    "output_hidden_rows": ("EXCEL2HTML_OUTPUT_HIDDEN_ROWS", False),
    "output_leading_spaces_as_non_breaking": (
        "EXCEL2HTML_OUTPUT_LEADING_SPACES_AS_NON_BREAKING",
        True,
    ),
    "output_row_numbers": ("EXCEL2HTML_OUTPUT_ROW_NUMBERS", True),
    "use_divs_to_span": ("EXCEL2HTML_USE_DIVS_TO_SPAN", False),
    "apply_text_rotation": ("EXCEL2HTML_APPLY_TEXT_ROTATION", False),
    "disable_formulas": ("EXCEL2HTML_DISABLE_FORMULAS", False),
}


class ConverterConfig:
    """HTML変換設定クラス"""

    def __init__(self):
        self._invalid_values: list[str] = []

        # 変換オプション
        self.output_column_headers = self._read_bool("output_column_headers")
        self.output_hidden_columns = self._read_bool("output_hidden_columns")
        self.output_hidden_rows = self._read_bool("output_hidden_rows")
        self.output_leading_spaces_as_non_breaking = self._read_bool(
            "output_leading_spaces_as_non_breaking"
        )
        self.output_row_numbers = self._read_bool("output_row_numbers")
        self.use_divs_to_span = self._read_bool("use_divs_to_span")
        self.apply_text_rotation = self._read_bool("apply_text_rotation")
        self.disable_formulas = self._read_bool("disable_formulas")

        # 出力設定
        self.log_level = os.getenv("EXCEL2HTML_LOG_LEVEL", "INFO").strip().upper()
        self.html_lang = os.getenv("EXCEL2HTML_HTML_LANG", "en").strip()

    def _read_bool(self, option: str) -> bool:
        """環境変数を真偽値として読み込む（不正値はデフォルトに戻す）"""
        env_name, default = CONVERTER_OPTIONS[option]
        raw = os.getenv(env_name)
        if raw is None or not raw.strip():
            return default

        value = raw.strip().lower()
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False

        self._invalid_values.append(f"{env_name} must be a boolean, got: {raw}")
        return default

    @property
    def log_level_value(self) -> int:
        """loggingモジュールのレベル値を返す"""
        if self.log_level in _LOG_LEVELS:
            return getattr(logging, self.log_level)
        return logging.INFO

    def options(self) -> dict[str, bool]:
        """変換オプションをdictで返す"""
        return {name: getattr(self, name) for name in CONVERTER_OPTIONS}

    def validate(self) -> list[str]:
        """設定の検証を行い、エラーメッセージのリストを返す"""
        errors = list(self._invalid_values)

        if self.log_level not in _LOG_LEVELS:
            errors.append(
                f"EXCEL2HTML_LOG_LEVEL must be one of {', '.join(sorted(_LOG_LEVELS))}"
            )

        if not self.html_lang:
            errors.append("EXCEL2HTML_HTML_LANG must not be empty")

        return errors

    @property
    def is_valid(self) -> bool:
        """設定が有効かどうかを返す"""
        return len(self.validate()) == 0


# グローバル設定インスタンス
config = ConverterConfig()
