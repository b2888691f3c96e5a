# gb_core_tracer/core/errors.py
"""
Core Layer (例外定義)

命令デコード時に発生しうる、ホストへ伝播させるべき例外を定義します。
"""
from typing import Optional

# @intent:responsibility テーブルに存在しないオペコードをデコードしようとしたことを表します。
# @intent:rationale 未定義オペコードを黙ってNOP扱いにすると不具合が隠れるため、
#                  stepの呼び出し元（ホスト）に停止・ログ・代替実行の判断を委ねます。
class UnimplementedOpcodeError(Exception):
    """
    デコードできないオペコードに遭遇した時に送出されます。
    送出時点ではCPUの状態（PC, SP, レジスタ, IME）は一切変更されていません。
    """
    def __init__(self, opcode: int, address: int, prefix: Optional[int] = None):
        self.opcode = opcode
        self.address = address
        self.prefix = prefix
        if prefix is None:
            message = f"Unimplemented opcode ${opcode:02X} at {address:#06x}"
        else:
            message = f"Unimplemented opcode ${prefix:02X} ${opcode:02X} at {address:#06x}"
        super().__init__(message)
