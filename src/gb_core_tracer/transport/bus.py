# gb_core_tracer/transport/bus.py
"""
Transport Layer (共通バス)

このモジュールは、16ビットのメモリアドレス空間を抽象化し、
読み書きアクセスを適切なデバイスに委譲する責務を負います。
CPUコアはここで定義される read_byte / write_byte の契約のみを通じてメモリに触れます。
"""
from abc import ABC, abstractmethod
from typing import List, Tuple, Optional
from dataclasses import dataclass
from enum import Enum

ADDRESS_MASK = 0xFFFF

# @intent:constant マップされていないアドレスを読み込んだ時に返す値（オープンバス）。
OPEN_BUS_VALUE = 0xFF

# @intent:responsibility バスアクセスを記録するためのタイプを定義します。
class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"

# @intent:responsibility 個々のバスアクセス操作を記録します。
@dataclass(frozen=True) # 不変データ構造
class BusAccess:
    """
    バス上で行われた単一のアクセス（読み込みまたは書き込み）を記録するデータクラス。
    """
    address: int
    data: int # 8bit value
    access_type: BusAccessType

# @intent:responsibility バスの抽象デバイスインターフェースを定義します。
class Device(ABC):
    """
    バスに接続されるデバイスの抽象基底クラス。
    全てのデバイスはreadとwriteのインターフェースを実装する必要があります。
    """
    # @intent:responsibility 指定されたオフセットから8bitのデータを読み出す責務を負います。
    @abstractmethod
    def read(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します。
        アドレスはデバイス内でのオフセットとして扱われます。
        """
        pass

    # @intent:responsibility 指定されたオフセットに8bitのデータを書き込みます。
    @abstractmethod
    def write(self, address: int, data: int) -> None:
        """
        指定されたアドレスに8bitのデータを書き込みます。
        アドレスはデバイス内でのオフセットとして扱われます。
        """
        pass

# @intent:responsibility 基本的なRAMデバイスの機能を提供します。
class RAM(Device):
    """
    WRAM/HRAMやテスト用のフラットメモリとして使うRAMデバイス。
    """
    # @intent:pre-condition sizeは正の整数である必要があります。
    def __init__(self, size: int):
        if not isinstance(size, int) or size <= 0:
            raise ValueError("RAM size must be a positive integer.")
        self._memory = bytearray(size)
        self._size = size

    def read(self, address: int) -> int:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for RAM of size {self._size}.")
        return self._memory[address]

    def write(self, address: int, data: int) -> None:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for RAM of size {self._size}.")
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._memory[address] = data

    def get_size(self) -> int:
        return self._size

# @intent:responsibility 読み込み専用メモリ(ROM)の機能を提供します。
class ROM(RAM):
    """
    カートリッジROMなどの読み込み専用メモリデバイス。
    通常の書き込みは無視されます。初期イメージは load_data で流し込みます。
    """
    # @intent:rationale 実機のROMへの書き込みはバンク切り替えレジスタ等への書き込みになるが、
    #                  MBCはこのコアの対象外のため、単に無視します。
    def write(self, address: int, data: int) -> None:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for ROM of size {self._size}.")
        # Intentional: ROM writes are ignored as per hardware behavior.
        pass

    # @intent:responsibility ROMの内容を初期化するためのバックドアメソッドです。
    def load_data(self, address: int, data: int) -> None:
        """
        ROMの内容を初期化するために使用します。通常のバスアクセス経由ではありません。
        """
        super().write(address, data)

# @intent:responsibility メモリアドレス空間を管理し、デバイスへのアクセスをディスパッチする共通バス。
# @intent:rationale バスの全てのアクセスを記録し、Snapshotに含めることでシステムの観測可能性を高めます。
class Bus:
    """
    16ビットのアドレス空間を管理し、デバイスへのアクセスをディスパッチする共通バス。
    CPUコアが要求する read_byte / write_byte は全アドレスに対して定義された全域関数です。
    """
    def __init__(self):
        # メモリマップ: (start_address, end_address, device) のタプルリスト
        self._memory_map: List[Tuple[int, int, Device]] = []
        self._bus_activity_log: List[BusAccess] = []

    def _log_access(self, address: int, data: int, access_type: BusAccessType) -> None:
        self._bus_activity_log.append(BusAccess(address=address, data=data, access_type=access_type))

    # @intent:responsibility 記録されたバスアクティビティログを取得し、クリアします。
    def get_and_clear_activity_log(self) -> List[BusAccess]:
        """
        現在のバスアクティビティログを返し、内部ログをクリアします。
        """
        log = self._bus_activity_log
        self._bus_activity_log = []
        return log

    # @intent:responsibility 指定されたアドレス範囲にデバイスを登録します。
    # @intent:pre-condition 0 <= start_address <= end_address <= 0xFFFF であり、deviceはDeviceのインスタンスである必要があります。
    # @intent:rationale アドレス範囲の重複チェックは行いません。先に登録されたデバイスが優先されます。
    def register_device(self, start_address: int, end_address: int, device: Device) -> None:
        """
        指定されたアドレス範囲にデバイスを登録します。
        """
        if not (0 <= start_address <= end_address <= ADDRESS_MASK):
            raise ValueError("Invalid address range: start_address must be <= end_address and within 0x0000-0xFFFF.")
        if not isinstance(device, Device):
            raise TypeError("Device must be an instance of a class derived from Device.")

        if isinstance(device, RAM):
            expected_size = end_address - start_address + 1
            if device.get_size() != expected_size:
                raise ValueError(
                    f"Registered {type(device).__name__} device size ({device.get_size()} bytes) does not match "
                    f"the specified address range size ({expected_size} bytes)."
                )

        self._memory_map.append((start_address, end_address, device))

    # @intent:responsibility 指定されたアドレスに対応するデバイスとオフセットを検索します。
    # @intent:post-condition デバイスが見つからなかった場合はNoneを返します。
    def _find_device(self, address: int) -> Optional[Tuple[Device, int]]:
        for start, end, device in self._memory_map:
            if start <= address <= end:
                return device, address - start
        return None

    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出します（CPUコア向けの契約）。
    def read_byte(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します。
        マップされていないアドレスは 0xFF を返します。アクセスはログに記録されます。
        """
        address &= ADDRESS_MASK
        data = self.peek(address)
        self._log_access(address, data, BusAccessType.READ)
        return data

    # @intent:responsibility ログを記録せずに指定されたアドレスからデータを読み出します。
    def peek(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します（ログ記録なし）。
        逆アセンブラやホスト側のインスペクタ用。
        """
        found = self._find_device(address & ADDRESS_MASK)
        if found is None:
            return OPEN_BUS_VALUE
        device, offset = found
        return device.read(offset)

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込みます（CPUコア向けの契約）。
    def write_byte(self, address: int, data: int) -> None:
        """
        指定されたアドレスに8bitのデータを書き込みます。
        ROMへの書き込みとマップされていないアドレスへの書き込みは無視されますが、
        アクセス自体はログに記録されます。
        """
        address &= ADDRESS_MASK
        found = self._find_device(address)
        if found is not None:
            device, offset = found
            device.write(offset, data)
        self._log_access(address, data, BusAccessType.WRITE)

    # @intent:responsibility ROMを含む任意のデバイスへ、ログを残さずにデータを流し込みます。
    # @intent:rationale カートリッジイメージやテストプログラムの配置はCPUの実行とは無関係のため、
    #                  バスアクティビティとして記録しません。
    def load(self, address: int, data: int) -> None:
        found = self._find_device(address & ADDRESS_MASK)
        if found is None:
            raise IndexError(f"Address {address:#06x} not mapped to any device.")
        device, offset = found
        if isinstance(device, ROM):
            device.load_data(offset, data)
        else:
            device.write(offset, data)

    # @intent:utility_function 連続したバイト列を指定アドレスから配置します。
    def load_bytes(self, start_address: int, data: bytes) -> None:
        for i, value in enumerate(data):
            self.load(start_address + i, value)
