"""
Excelリッチテキストの書式ラン分割ユーティリティ
"""

from excel2html.workbook.model import FontInfo, RichText


class ExcelRichTextSplitter:
    """書式付き文字列を同一フォントの区間に分割（全て staticmethod）"""

    @staticmethod
    def split(rich_text: RichText, base_font: FontInfo) -> list[tuple[str, FontInfo]]:
        """
        書式ランの境界で文字列を分割する

        ランiのフォントは境界iから次の境界の直前（または文字列末尾）まで適用される。
        最初の境界より前の文字列と、ランが無い文字列全体はセルのフォントを使う。

        Args:
            rich_text: 書式付き文字列
            base_font: セルのフォント

        Returns:
            (テキスト, フォント)のリスト（文字列の先頭から順）
        """
        text = rich_text.text
        runs = sorted(rich_text.runs, key=lambda run: run.start)
        if not runs:
            return [(text, base_font)] if text else []

        segments: list[tuple[str, FontInfo]] = []
        if runs[0].start > 0:
            segments.append((text[: runs[0].start], base_font))

        for i, run in enumerate(runs):
            end = runs[i + 1].start if i + 1 < len(runs) else len(text)
            segment = text[run.start : end]
            if segment:
                segments.append((segment, run.font))

        return segments
