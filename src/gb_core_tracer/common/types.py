"""
共通の型定義を提供するモジュール。
プロジェクト全体で使用される汎用的な型エイリアスなどを定義します。
"""
from typing import Dict, List, Tuple

# @intent:data_structure シンボル名とアドレスをマッピングする辞書の型エイリアス。
# CPUのSnapshot生成や逆アセンブル結果の注釈で共通して使用されます。
SymbolMap = Dict[str, int]

# @intent:data_structure 逆アセンブル結果 (address, hex_bytes, mnemonic) のリスト。
DisassemblyListing = List[Tuple[int, str, str]]
