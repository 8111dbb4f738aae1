"""
Excel表示形式による数値の整形

ロケールに依存しない固定の規則（小数点は"."、桁区切りは","、英語の月名・曜日名）で
数値を表示形式文字列に従って文字列化する。対応範囲:
セクション（正;負;ゼロ;文字列）、条件・色指定、通貨記号、引用符・エスケープ、
桁区切り・千単位の縮小、パーセント、指数、分数、日付・時刻（経過時間を含む）。
文字列形式（"@"）の数値は「標準」形式で表示する
"""

import datetime
import math
import re
from decimal import ROUND_HALF_UP, Decimal
from fractions import Fraction

from openpyxl.styles.numbers import is_date_format

_EXCEL_BASE_DATE = datetime.datetime(1899, 12, 30)

_MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]
_DAY_NAMES = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]

_CONDITION_RE = re.compile(r"^\[(<=|>=|<>|<|>|=)(-?\d+(?:\.\d+)?)\]")
_ELAPSED_RE = re.compile(r"^\[(h+|m+|s+)\]$", re.IGNORECASE)
_BRACKET_RE = re.compile(r"\[[^\]]*\]")
_DIGIT_PLACEHOLDERS = "0#?"
_DENOMINATOR_CHARS = "0#?123456789"
_PLACEHOLDER_TOKENS = [("placeholder", char) for char in _DIGIT_PLACEHOLDERS]


class ExcelDataFormatter:
    """表示形式文字列による数値整形（全て staticmethod）"""

    @staticmethod
    def format_raw_cell_contents(value: float, format_string: str | None) -> str:
        """
        数値を表示形式に従って文字列化する

        Args:
            value: セルの数値（日付はシリアル値）
            format_string: 表示形式文字列（例: "#,##0.00", "yyyy-mm-dd"）

        Returns:
            整形済み文字列
        """
        if format_string is None or not format_string.strip():
            return ExcelDataFormatter.format_general(value)
        if format_string.strip().lower() == "general":
            return ExcelDataFormatter.format_general(value)

        sections = ExcelDataFormatter.split_sections(format_string)
        section, use_absolute = ExcelDataFormatter._select_section(sections, value)
        if not section:
            return ""

        section = _CONDITION_RE.sub("", section)
        bare_section = _BRACKET_RE.sub("", section).strip()
        if bare_section.lower() == "general" or bare_section == "@":
            return ExcelDataFormatter.format_general(abs(value) if use_absolute else value)

        if is_date_format(section):
            if value < 0:
                return ExcelDataFormatter.format_general(value)
            return ExcelDataFormatter._format_date(value, section)

        if use_absolute:
            return ExcelDataFormatter._format_number(abs(value), section)

        text = ExcelDataFormatter._format_number(abs(value), section)
        if value < 0 and ExcelDataFormatter._has_nonzero_digit(text):
            return "-" + text
        return text

    @staticmethod
    def format_general(value: float) -> str:
        """「標準」形式（整数はそのまま、それ以外は有効数字10桁）"""
        if float(value).is_integer() and abs(value) < 1e11:
            return str(int(value))
        return f"{value:.10g}".upper()

    @staticmethod
    def split_sections(format_string: str) -> list[str]:
        """";"でセクションに分割する（引用符・角括弧・エスケープ内は分割しない）"""
        sections: list[str] = []
        current: list[str] = []
        in_quotes = False
        in_brackets = False
        i = 0
        while i < len(format_string):
            char = format_string[i]
            if char == "\\" and not in_quotes and i + 1 < len(format_string):
                current.append(format_string[i : i + 2])
                i += 2
                continue
            if char == '"' and not in_brackets:
                in_quotes = not in_quotes
            elif char == "[" and not in_quotes:
                in_brackets = True
            elif char == "]" and not in_quotes:
                in_brackets = False
            elif char == ";" and not in_quotes and not in_brackets:
                sections.append("".join(current))
                current = []
                i += 1
                continue
            current.append(char)
            i += 1
        sections.append("".join(current))
        return sections

    @staticmethod
    def _select_section(sections: list[str], value: float) -> tuple[str, bool]:
        """
        値に対応するセクションを選ぶ

        Returns:
            (セクション, 絶対値で整形するか)
        """
        conditions = [_CONDITION_RE.match(section) for section in sections[:2]]
        if any(conditions):
            for section, condition in zip(sections, conditions):
                if condition and _compare(value, condition.group(1), condition.group(2)):
                    return (section, False)
            # 条件に一致しない場合は条件の無いセクション
            others = [
                section
                for i, section in enumerate(sections[:3])
                if i >= len(conditions) or conditions[i] is None
            ]
            return (others[0] if others else "General", False)

        if len(sections) == 1 or (value > 0) or (value == 0 and len(sections) < 3):
            return (sections[0], False)
        if value < 0:
            return (sections[1], True)
        return (sections[2], False)

    @staticmethod
    def _has_nonzero_digit(text: str) -> bool:
        return any(char.isdigit() and char != "0" for char in text)

    @staticmethod
    def _tokenize(section: str) -> list[tuple[str, str]]:
        """
        表示形式をトークン列に分解する

        Returns:
            (種類, 文字列)のリスト。種類は "literal" / "placeholder" / "bracket"
        """
        tokens: list[tuple[str, str]] = []
        i = 0
        while i < len(section):
            char = section[i]
            if char == '"':
                end = section.find('"', i + 1)
                if end == -1:
                    end = len(section)
                tokens.append(("literal", section[i + 1 : end]))
                i = end + 1
            elif char == "\\" and i + 1 < len(section):
                tokens.append(("literal", section[i + 1]))
                i += 2
            elif char == "_" and i + 1 < len(section):
                # 文字幅分の空白
                tokens.append(("literal", " "))
                i += 2
            elif char == "*" and i + 1 < len(section):
                # 繰り返し文字（セル幅に依存するため出力しない）
                i += 2
            elif char == "[":
                end = section.find("]", i)
                if end == -1:
                    end = len(section) - 1
                tokens.append(("bracket", section[i : end + 1]))
                i = end + 1
            else:
                tokens.append(("placeholder", char))
                i += 1
        return tokens

    @staticmethod
    def _bracket_literal(bracket: str) -> str:
        """[$€-407] のような通貨指定から記号を取り出す（色・ロケール指定は空）"""
        inner = bracket[1:-1]
        if inner.startswith("$"):
            return inner[1:].split("-", 1)[0]
        return ""

    @staticmethod
    def _format_number(value: float, section: str) -> str:
        tokens = ExcelDataFormatter._tokenize(section)
        slash = ExcelDataFormatter._fraction_slash(tokens)
        if slash is not None:
            return ExcelDataFormatter._format_fraction(value, tokens, slash)

        # 数値部分（最初〜最後の桁プレースホルダー）と前後のリテラルを分離
        placeholder_positions = [
            i
            for i, (kind, text) in enumerate(tokens)
            if kind == "placeholder" and text in _DIGIT_PLACEHOLDERS
        ]
        if not placeholder_positions:
            # 桁プレースホルダーが無い形式（例: "\"-\""）はリテラルのみ
            return "".join(
                ExcelDataFormatter._literal_text(kind, text) for kind, text in tokens
            )

        first, last = placeholder_positions[0], placeholder_positions[-1]
        # 数値部分の直前・直後の "," "." は数値部分として扱う
        while first > 0 and tokens[first - 1] == ("placeholder", "."):
            first -= 1
        while last + 1 < len(tokens) and tokens[last + 1] in (
            ("placeholder", ","),
            ("placeholder", "."),
        ):
            last += 1

        prefix = "".join(
            ExcelDataFormatter._literal_text(kind, text) for kind, text in tokens[:first]
        )
        suffix = "".join(
            ExcelDataFormatter._literal_text(kind, text)
            for kind, text in tokens[last + 1 :]
        )
        body = tokens[first : last + 1]

        percent_count = section.count("%") - _quoted_count(section, "%")
        value = value * (100**percent_count)

        body_text = "".join(text for _kind, text in body)
        exponent_match = re.search(r"[eE]([+-])", body_text)
        if exponent_match:
            return prefix + ExcelDataFormatter._format_scientific(value, body) + suffix

        return prefix + ExcelDataFormatter._format_fixed(value, body) + suffix

    @staticmethod
    def _literal_text(kind: str, text: str) -> str:
        if kind == "bracket":
            return ExcelDataFormatter._bracket_literal(text)
        return text

    @staticmethod
    def _split_body(body: list[tuple[str, str]]):
        """数値部分を整数部・小数部のトークンに分け、桁区切り・縮小を判定する"""
        integer_part: list[tuple[str, str]] = []
        fraction_part: list[tuple[str, str]] = []
        has_point = False
        for token in body:
            if token == ("placeholder", ".") and not has_point:
                has_point = True
                continue
            (fraction_part if has_point else integer_part).append(token)

        # 整数部の末尾（小数点直前）の "," は千単位の縮小
        scale = 0
        while integer_part and integer_part[-1] == ("placeholder", ","):
            integer_part.pop()
            scale += 1
        while fraction_part and fraction_part[-1] == ("placeholder", ","):
            fraction_part.pop()
            scale += 1

        grouping = ("placeholder", ",") in integer_part
        integer_part = [token for token in integer_part if token != ("placeholder", ",")]
        return integer_part, fraction_part, has_point, grouping, scale

    @staticmethod
    def _format_fixed(value: float, body: list[tuple[str, str]]) -> str:
        integer_part, fraction_part, has_point, grouping, scale = (
            ExcelDataFormatter._split_body(body)
        )
        value = value / (1000**scale)

        decimals = sum(
            1
            for kind, text in fraction_part
            if kind == "placeholder" and text in _DIGIT_PLACEHOLDERS
        )
        rounded = _round_half_up(value, decimals)
        integer_digits, _, fraction_digits = f"{rounded:f}".partition(".")
        fraction_digits = fraction_digits.ljust(decimals, "0")[:decimals]
        if integer_digits == "0":
            integer_digits = ""

        text = ExcelDataFormatter._fill_integer(integer_part, integer_digits, grouping)
        if has_point:
            text += "." + ExcelDataFormatter._fill_fraction(fraction_part, fraction_digits)
        return text

    @staticmethod
    def _fill_integer(
        tokens: list[tuple[str, str]], digits: str, grouping: bool
    ) -> str:
        """整数部のプレースホルダーへ右から桁を割り当てる"""
        placeholder_indices = [
            i
            for i, (kind, text) in enumerate(tokens)
            if kind == "placeholder" and text in _DIGIT_PLACEHOLDERS
        ]
        if not placeholder_indices:
            tokens = [("placeholder", "#")] + tokens
            placeholder_indices = [0]
        output: list[str] = []
        remaining = list(digits)
        emitted = 0

        def _push(digit: str) -> None:
            nonlocal emitted
            if grouping and emitted and emitted % 3 == 0:
                output.append(",")
            output.append(digit)
            emitted += 1

        for i in range(len(tokens) - 1, -1, -1):
            kind, text = tokens[i]
            if kind != "placeholder" or text not in _DIGIT_PLACEHOLDERS:
                output.append(ExcelDataFormatter._literal_text(kind, text))
                continue

            if i == placeholder_indices[0]:
                # 最も左のプレースホルダーは残りの桁を全て受け取る
                if not remaining:
                    if text == "0":
                        _push("0")
                    elif text == "?":
                        output.append(" ")
                while remaining:
                    _push(remaining.pop())
            elif remaining:
                _push(remaining.pop())
            elif text == "0":
                _push("0")
            elif text == "?":
                output.append(" ")

        return "".join(reversed(output))

    @staticmethod
    def _fill_fraction(tokens: list[tuple[str, str]], digits: str) -> str:
        """小数部のプレースホルダーへ左から桁を割り当てる（末尾の0は#・?で省略）"""
        placeholders = [
            text
            for kind, text in tokens
            if kind == "placeholder" and text in _DIGIT_PLACEHOLDERS
        ]
        rendered = list(digits)
        for i in range(len(placeholders) - 1, -1, -1):
            if placeholders[i] == "0" or rendered[i] != "0":
                break
            rendered[i] = "" if placeholders[i] == "#" else " "

        output: list[str] = []
        position = 0
        for kind, text in tokens:
            if kind == "placeholder" and text in _DIGIT_PLACEHOLDERS:
                output.append(rendered[position])
                position += 1
            else:
                output.append(ExcelDataFormatter._literal_text(kind, text))
        return "".join(output)

    @staticmethod
    def _fraction_slash(tokens: list[tuple[str, str]]) -> int | None:
        """分数形式（"# ?/?" "?/4" など）なら "/" の位置を返す"""
        for i, token in enumerate(tokens):
            if token != ("placeholder", "/") or i == 0 or i + 1 == len(tokens):
                continue
            before_kind, before_text = tokens[i - 1]
            after_kind, after_text = tokens[i + 1]
            if (
                before_kind == "placeholder"
                and before_text in _DIGIT_PLACEHOLDERS
                and after_kind == "placeholder"
                and after_text in _DENOMINATOR_CHARS
            ):
                return i
        return None

    @staticmethod
    def _format_fraction(value: float, tokens: list[tuple[str, str]], slash: int) -> str:
        """
        分数形式で整形する

        分母が数字で指定されていればその分母に丸め、プレースホルダーなら
        その桁数に収まる最も近い分数にする。整数部のプレースホルダーがあれば
        帯分数（整数部が0なら分数のみ）で表示する。
        """
        numerator_start = slash
        while numerator_start > 0 and tokens[numerator_start - 1] in _PLACEHOLDER_TOKENS:
            numerator_start -= 1
        denominator_end = slash + 1
        while (
            denominator_end < len(tokens)
            and tokens[denominator_end][0] == "placeholder"
            and tokens[denominator_end][1] in _DENOMINATOR_CHARS
        ):
            denominator_end += 1

        numerator_pattern = "".join(text for _kind, text in tokens[numerator_start:slash])
        denominator_pattern = "".join(
            text for _kind, text in tokens[slash + 1 : denominator_end]
        )
        head = tokens[:numerator_start]
        whole_positions = [
            i
            for i, (kind, text) in enumerate(head)
            if kind == "placeholder" and text in _DIGIT_PLACEHOLDERS
        ]
        suffix = "".join(
            ExcelDataFormatter._literal_text(kind, text)
            for kind, text in tokens[denominator_end:]
        )

        if whole_positions:
            whole = int(value)
            remainder = value - whole
        else:
            whole = 0
            remainder = value

        if denominator_pattern.isdigit():
            denominator = int(denominator_pattern)
            numerator = int(_round_half_up(remainder * denominator, 0))
        else:
            approximation = Fraction(remainder).limit_denominator(
                10 ** len(denominator_pattern) - 1
            )
            numerator, denominator = approximation.numerator, approximation.denominator

        if whole_positions and numerator == denominator:
            whole += 1
            numerator = 0

        if whole_positions:
            first, last = whole_positions[0], whole_positions[-1]
            prefix = "".join(
                ExcelDataFormatter._literal_text(kind, text) for kind, text in head[:first]
            )
            separator = "".join(
                ExcelDataFormatter._literal_text(kind, text)
                for kind, text in head[last + 1 :]
            )
            whole_text = str(whole) if whole else ""
            if numerator == 0:
                return prefix + (whole_text or "0") + suffix
            if not whole_text:
                separator = ""
        else:
            prefix = "".join(
                ExcelDataFormatter._literal_text(kind, text) for kind, text in head
            )
            separator = ""
            whole_text = ""
            if numerator == 0 and not denominator_pattern.isdigit():
                return prefix + "0" + suffix

        if denominator_pattern.isdigit():
            denominator_text = denominator_pattern
        else:
            denominator_text = _pad_fraction_digits(
                str(denominator), denominator_pattern, right_align=False
            )
        numerator_text = _pad_fraction_digits(str(numerator), numerator_pattern, right_align=True)
        return prefix + whole_text + separator + numerator_text + "/" + denominator_text + suffix

    @staticmethod
    def _format_scientific(value: float, body: list[tuple[str, str]]) -> str:
        body_text = "".join(text for _kind, text in body)
        match = re.search(r"[eE]([+-])", body_text)
        mantissa_pattern = body_text[: match.start()]
        exponent_pattern = body_text[match.end() :]
        sign_mode = match.group(1)

        mantissa_body = [("placeholder", char) for char in mantissa_pattern]
        integer_places = sum(
            1
            for char in mantissa_pattern.split(".")[0]
            if char in _DIGIT_PLACEHOLDERS
        )
        integer_places = max(1, integer_places)

        exponent = 0
        if value != 0:
            exponent = math.floor(math.log10(value))
            if integer_places > 1:
                exponent -= exponent % integer_places
            else:
                exponent -= integer_places - 1

        mantissa = value / (10**exponent) if value != 0 else 0.0
        text = ExcelDataFormatter._format_fixed(mantissa, mantissa_body)
        # 丸めで桁上がりした場合は指数を補正する
        if value != 0 and len(text.split(".")[0].lstrip("0")) > integer_places:
            exponent += integer_places
            mantissa = value / (10**exponent)
            text = ExcelDataFormatter._format_fixed(mantissa, mantissa_body)

        exponent_width = sum(1 for char in exponent_pattern if char == "0") or 1
        exponent_sign = "-" if exponent < 0 else ("+" if sign_mode == "+" else "")
        return f"{text}E{exponent_sign}{abs(exponent):0{exponent_width}d}"

    @staticmethod
    def _tokenize_date(section: str) -> list[tuple[str, str]]:
        """
        日付・時刻形式をトークン列に分解する

        Returns:
            (種類, 文字列)のリスト。種類は "literal" / "y" / "m" / "d" / "h" / "s" /
            "ampm" / "elapsed" / "subsecond"
        """
        tokens: list[tuple[str, str]] = []
        i = 0
        lower = section.lower()
        while i < len(section):
            char = section[i]
            char_lower = lower[i]
            if char == '"':
                end = section.find('"', i + 1)
                if end == -1:
                    end = len(section)
                tokens.append(("literal", section[i + 1 : end]))
                i = end + 1
            elif char == "\\" and i + 1 < len(section):
                tokens.append(("literal", section[i + 1]))
                i += 2
            elif char == "_" and i + 1 < len(section):
                tokens.append(("literal", " "))
                i += 2
            elif char == "*" and i + 1 < len(section):
                i += 2
            elif char == "[":
                end = section.find("]", i)
                if end == -1:
                    end = len(section) - 1
                bracket = section[i : end + 1]
                if _ELAPSED_RE.match(bracket):
                    tokens.append(("elapsed", bracket[1:-1].lower()))
                else:
                    literal = ExcelDataFormatter._bracket_literal(bracket)
                    if literal:
                        tokens.append(("literal", literal))
                i = end + 1
            elif lower.startswith("am/pm", i):
                tokens.append(("ampm", section[i : i + 5]))
                i += 5
            elif lower.startswith("a/p", i):
                tokens.append(("ampm", section[i : i + 3]))
                i += 3
            elif char == "." and i + 1 < len(section) and section[i + 1] == "0":
                end = i + 1
                while end < len(section) and section[end] == "0":
                    end += 1
                tokens.append(("subsecond", section[i + 1 : end]))
                i = end
            elif char_lower in "ymdhse":
                end = i
                while end < len(section) and lower[end] == char_lower:
                    end += 1
                kind = "y" if char_lower == "e" else char_lower
                tokens.append((kind, lower[i:end]))
                i = end
            else:
                tokens.append(("literal", char))
                i += 1

        # "m" は時の後、または秒の前なら分
        date_indices = [i for i, (kind, _text) in enumerate(tokens) if kind != "literal"]
        for position, index in enumerate(date_indices):
            kind, text = tokens[index]
            if kind != "m":
                continue
            previous_kind = tokens[date_indices[position - 1]][0] if position > 0 else None
            next_kind = (
                tokens[date_indices[position + 1]][0]
                if position + 1 < len(date_indices)
                else None
            )
            if previous_kind in ("h", "elapsed") or next_kind == "s":
                tokens[index] = ("minute", text)
        return tokens

    @staticmethod
    def _format_date(value: float, section: str) -> str:
        tokens = ExcelDataFormatter._tokenize_date(section)
        subsecond_digits = max(
            (len(text) for kind, text in tokens if kind == "subsecond"), default=0
        )
        use_ampm = any(kind == "ampm" for kind, _text in tokens)

        # 表示桁に合わせて丸める（Excelは秒未満を四捨五入して表示する）
        unit = 10**subsecond_digits
        total_units = int(_round_half_up(value * 86400 * unit, 0))
        total_seconds, subsecond = divmod(total_units, unit)
        days, seconds_of_day = divmod(total_seconds, 86400)

        # 1900年2月29日（存在しない日）を含むシリアル値の補正
        if days < 61:
            days += 1
        moment = _EXCEL_BASE_DATE + datetime.timedelta(days=days, seconds=seconds_of_day)

        output: list[str] = []
        for kind, text in tokens:
            if kind == "literal":
                output.append(text)
            elif kind == "y":
                output.append(
                    f"{moment.year % 100:02d}" if len(text) <= 2 else f"{moment.year:04d}"
                )
            elif kind == "m":
                output.append(_format_month(moment.month, len(text)))
            elif kind == "d":
                output.append(_format_day(moment, len(text)))
            elif kind == "h":
                hour = moment.hour
                if use_ampm:
                    hour = hour % 12 or 12
                output.append(f"{hour:02d}" if len(text) >= 2 else str(hour))
            elif kind == "minute":
                output.append(
                    f"{moment.minute:02d}" if len(text) >= 2 else str(moment.minute)
                )
            elif kind == "s":
                output.append(
                    f"{moment.second:02d}" if len(text) >= 2 else str(moment.second)
                )
            elif kind == "subsecond":
                digits = f"{subsecond:0{subsecond_digits}d}"[: len(text)]
                output.append("." + digits)
            elif kind == "ampm":
                output.append(_format_ampm(moment.hour, text))
            elif kind == "elapsed":
                output.append(_format_elapsed(total_seconds, text))
        return "".join(output)


def _compare(value: float, operator: str, operand: str) -> bool:
    number = float(operand)
    if operator == "<":
        return value < number
    if operator == "<=":
        return value <= number
    if operator == ">":
        return value > number
    if operator == ">=":
        return value >= number
    if operator == "=":
        return value == number
    return value != number


def _round_half_up(value: float, decimals: int) -> Decimal:
    quantum = Decimal(1).scaleb(-decimals)
    return Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP)


def _pad_fraction_digits(digits: str, pattern: str, right_align: bool) -> str:
    """分子・分母をプレースホルダーの桁数に揃える（"?"は空白、"0"は0で埋める）"""
    missing = len(pattern) - len(digits)
    if missing <= 0:
        return digits
    unused = pattern[:missing] if right_align else pattern[len(pattern) - missing :]
    fill = "".join("0" if char == "0" else " " if char == "?" else "" for char in unused)
    return fill + digits if right_align else digits + fill


def _quoted_count(section: str, char: str) -> int:
    """引用符・エスケープ内にある文字の数"""
    count = 0
    for quoted in re.findall(r'"[^"]*"', section):
        count += quoted.count(char)
    count += section.count("\\" + char)
    return count


def _format_month(month: int, width: int) -> str:
    if width == 1:
        return str(month)
    if width == 2:
        return f"{month:02d}"
    name = _MONTH_NAMES[month - 1]
    if width == 3:
        return name[:3]
    if width == 5:
        return name[0]
    return name


def _format_day(moment: datetime.datetime, width: int) -> str:
    if width == 1:
        return str(moment.day)
    if width == 2:
        return f"{moment.day:02d}"
    name = _DAY_NAMES[moment.weekday()]
    if width == 3:
        return name[:3]
    return name


def _format_ampm(hour: int, pattern: str) -> str:
    is_pm = hour >= 12
    if len(pattern) == 3:
        # A/P
        letter = "P" if is_pm else "A"
        return letter if pattern[0].isupper() else letter.lower()
    text = "PM" if is_pm else "AM"
    return text if pattern[0].isupper() else text.lower()


def _format_elapsed(total_seconds: int, pattern: str) -> str:
    width = len(pattern)
    if pattern[0] == "h":
        amount = total_seconds // 3600
    elif pattern[0] == "m":
        amount = total_seconds // 60
    else:
        amount = total_seconds
    return f"{amount:0{width}d}"
