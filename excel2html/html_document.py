"""
HTMLドキュメントの組み立て

xml.etree.ElementTreeでHTMLの要素ツリーを構築し、登録されたCSSクラスを
<style>要素にまとめてから文字列として出力する
"""

import xml.etree.ElementTree as ET

from excel2html.excel.style_registry import ExcelStyleRegistry


class HtmlDocument:
    """HTML要素ツリーとスタイルシートを管理する"""

    def __init__(self, style_registry: ExcelStyleRegistry, lang: str = "en"):
        self.style_registry = style_registry

        self.html = ET.Element("html", {"lang": lang})
        self.head = ET.SubElement(self.html, "head")
        ET.SubElement(self.head, "meta", {"charset": "utf-8"})
        self.body = ET.SubElement(self.html, "body")

        self._title: ET.Element | None = None
        self._stylesheet: ET.Element | None = None

    @property
    def title(self) -> str | None:
        if self._title is None:
            return None
        return self._title.text

    @title.setter
    def title(self, value: str) -> None:
        if self._title is None:
            self._title = ET.SubElement(self.head, "title")
        self._title.text = value

    def add_author(self, value: str) -> None:
        self._add_meta("author", value)

    def add_keywords(self, value: str) -> None:
        self._add_meta("keywords", value)

    def add_description(self, value: str) -> None:
        self._add_meta("description", value)

    def _add_meta(self, name: str, content: str) -> None:
        ET.SubElement(self.head, "meta", {"name": name, "content": content})

    def add_style_class(self, element: ET.Element, prefix: str, style: str) -> str:
        """
        CSS文字列に対応するクラスを要素に追加する

        Args:
            element: 対象要素
            prefix: クラス名のプレフィックス
            style: CSS宣言の文字列

        Returns:
            追加したクラス名
        """
        class_name = self.style_registry.get_or_create_css_class(prefix, style)
        HtmlDocument.append_class(element, class_name)
        return class_name

    @staticmethod
    def append_class(element: ET.Element, class_name: str) -> None:
        existing = element.get("class")
        element.set("class", f"{existing} {class_name}" if existing else class_name)

    @staticmethod
    def append_text(parent: ET.Element, text: str) -> None:
        """要素の末尾にテキストを追加（子要素がある場合は最後の子要素のtail）"""
        if len(parent):
            last = parent[-1]
            last.tail = (last.tail or "") + text
        else:
            parent.text = (parent.text or "") + text

    @staticmethod
    def append_style(element: ET.Element, style: str) -> None:
        element.set("style", element.get("style", "") + style)

    def update_stylesheet(self) -> None:
        """登録済みのCSSクラスを<style>要素に書き出す"""
        if self._stylesheet is None:
            self._stylesheet = ET.SubElement(self.head, "style", {"type": "text/css"})
        rules = self.style_registry.rules()
        self._stylesheet.text = "\n" + "".join(f"{rule}\n" for rule in rules)

    def to_html(self) -> str:
        """HTML文字列として出力する"""
        self.update_stylesheet()
        return "<!DOCTYPE html>\n" + ET.tostring(
            self.html, encoding="unicode", method="html"
        )
