"""
開発用ユーティリティコマンド（テスト・lint・format・型チェック）
"""

import subprocess
import sys

# 品質チェック対象ディレクトリの定数
QUALITY_CHECK_DIRS = ["excel2html", "tests"]

RUFF_CHECK = ["ruff", "check"] + QUALITY_CHECK_DIRS
RUFF_FORMAT = ["ruff", "format"] + QUALITY_CHECK_DIRS
TY_CHECK = ["ty", "check"] + QUALITY_CHECK_DIRS


def test():
    """
    pytestでテストを実行する（追加の引数はpytestにそのまま渡す）
    """
    result = subprocess.run(["pytest"] + sys.argv[1:])
    sys.exit(result.returncode)


def lint():
    """
    ruffでコードの静的解析を実行する
    """
    subprocess.run(RUFF_CHECK)


def format():
    """
    ruffでコードフォーマットを実行する
    """
    subprocess.run(RUFF_FORMAT)


def fix():
    """
    ruffで自動修正とフォーマットを一括実行する
    """
    print("🔧 コードの自動修正とフォーマットを実行中...")

    fix_result = subprocess.run(["ruff", "check", "--fix"] + QUALITY_CHECK_DIRS)
    format_result = subprocess.run(RUFF_FORMAT)

    if fix_result.returncode == 0 and format_result.returncode == 0:
        print("✅ 自動修正とフォーマットが完了しました")
    else:
        print("❌ 自動修正またはフォーマットでエラーが発生しました")

    sys.exit(fix_result.returncode or format_result.returncode)


def type_check():
    """
    型チェックを実行する (ty)
    """
    subprocess.run(TY_CHECK)


def check():
    """
    型チェック・Lint・テストをまとめて実行する（修正はしない）
    """
    steps = [
        ("型チェック", TY_CHECK),
        ("Lint", RUFF_CHECK),
        ("テスト", ["pytest", "-q"]),
    ]

    results = []
    for label, cmd in steps:
        print(f"🔍 {label}を実行中...")
        results.append((label, subprocess.run(cmd, capture_output=True, text=True)))

    print("\n" + "=" * 50)
    print("📊 実行結果サマリー")
    print("=" * 50)
    for label, result in results:
        status = "✅ PASS" if result.returncode == 0 else "❌ FAIL"
        print(f"{label}: {status}")

    failed = [(label, result) for label, result in results if result.returncode != 0]
    for label, result in failed:
        print(f"\n❌ {label}のエラー:")
        print(result.stdout)
        print(result.stderr)

    if failed:
        sys.exit(1)
    print("\n🎉 すべてのチェックが成功しました！")
