import locale
import logging
import sys
from pathlib import Path

import typer

from .config import ConverterConfig
from .converter import convert_file
from .error_messages import ConversionError, get_configuration_error

# typerアプリケーションを作成
app = typer.Typer()


def setup_logging(level: int = logging.INFO):
    """
    すべてのログ出力をstderrに向けるロギングを設定します。
    これにより、stdoutに出力するHTMLにログが混ざるのを防ぎます。
    """
    log_formatter = logging.Formatter("%(asctime)s [%(levelname)s] - %(message)s")
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # stdoutへの出力を防ぐため、既存のハンドラをクリア
    root_logger.handlers.clear()

    # stderrにログを出力するハンドラを追加
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(log_formatter)
    root_logger.addHandler(stream_handler)

    logging.debug("Logging configured to output to stderr.")


@app.command()
def main(
    input_file: Path = typer.Argument(
        ..., help="変換するワークブック（.xlsx / .xlsm / .xltx / .xltm / .xls）。"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="HTMLの出力先。省略時は標準出力。"
    ),
    column_headers: bool | None = typer.Option(
        None, "--column-headers/--no-column-headers", help="列番号の見出し行を出力する。"
    ),
    hidden_columns: bool | None = typer.Option(
        None, "--hidden-columns/--no-hidden-columns", help="非表示の列も出力する。"
    ),
    hidden_rows: bool | None = typer.Option(
        None, "--hidden-rows/--no-hidden-rows", help="非表示の行も出力する。"
    ),
    leading_spaces: bool | None = typer.Option(
        None,
        "--leading-spaces-as-nbsp/--no-leading-spaces-as-nbsp",
        help="先頭のスペースを改行なしスペースとして出力する。",
    ),
    row_numbers: bool | None = typer.Option(
        None, "--row-numbers/--no-row-numbers", help="行番号の列を出力する。"
    ),
    divs_to_span: bool | None = typer.Option(
        None,
        "--divs-to-span/--no-divs-to-span",
        help="右隣の空セルにはみ出すテキストをdivで出力する。",
    ),
    text_rotation: bool | None = typer.Option(
        None, "--text-rotation/--no-text-rotation", help="文字の回転をCSSで再現する。"
    ),
    disable_formulas: bool | None = typer.Option(
        None,
        "--disable-formulas/--no-disable-formulas",
        help="数式セルを空として出力する。",
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="ログレベル（DEBUG / INFO / WARNING / ERROR）。"
    ),
):
    """
    ExcelワークブックをHTMLに変換します。
    """
    converter_config = ConverterConfig()
    if log_level is not None:
        converter_config.log_level = log_level.strip().upper()

    setup_logging(converter_config.log_level_value)

    # 数値セルの小数点・桁区切りはシステムのロケールに従う
    try:
        locale.setlocale(locale.LC_NUMERIC, "")
    except locale.Error as e:
        logging.warning(f"Failed to apply the system locale, numbers use the C locale: {e}")

    # コマンドラインで指定されたオプションで環境変数の設定を上書き
    overrides = {
        "output_column_headers": column_headers,
        "output_hidden_columns": hidden_columns,
        "output_hidden_rows": hidden_rows,
        "output_leading_spaces_as_non_breaking": leading_spaces,
        "output_row_numbers": row_numbers,
        "use_divs_to_span": divs_to_span,
        "apply_text_rotation": text_rotation,
        "disable_formulas": disable_formulas,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(converter_config, name, value)

    errors = converter_config.validate()
    if errors:
        logging.error(get_configuration_error(errors).get_formatted_message())
        raise typer.Exit(code=1)

    try:
        html = convert_file(input_file, converter_config)
    except ConversionError as e:
        logging.error(f"Conversion failed: {e.get_formatted_message()}")
        raise typer.Exit(code=1) from e

    if output is None:
        typer.echo(html)
        return

    output.write_text(html, encoding="utf-8")
    logging.info(f"HTML written to {output}")


if __name__ == "__main__":
    app()
