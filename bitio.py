from typing import BinaryIO, Optional


class BitInputStream: # Reads MSB-first bit fields from a byte stream
    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.acc = 0 # buffered bits not yet handed out
        self.acc_bits = 0
        self.bits_read = 0

    def read_bits(self, n: int) -> Optional[int]:
        """
        Read exactly n bits, most significant first
        Returns None (end of stream) if fewer than n bits are left
        """
        if n < 0:
            raise ValueError(f"bit count must be >= 0, got {n}")
        while self.acc_bits < n:
            byte = self.stream.read(1)
            if not byte:
                return None
            self.acc = (self.acc << 8) | byte[0]
            self.acc_bits += 8

        self.acc_bits -= n
        value = self.acc >> self.acc_bits
        self.acc &= (1 << self.acc_bits) - 1
        self.bits_read += n
        return value

    def reset(self) -> None:
        # needs a seekable stream, io raises UnsupportedOperation otherwise
        self.stream.seek(0)
        self.acc = 0
        self.acc_bits = 0
        self.bits_read = 0

    def close(self) -> None:
        self.stream.close()

    def __enter__(self) -> "BitInputStream":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class BitOutputStream: # Packs MSB-first bit fields into bytes
    def __init__(self, stream: BinaryIO, closefd: bool = True):
        self.stream = stream
        self.closefd = closefd # False leaves the wrapped stream open on close()
        self.acc = 0
        self.acc_bits = 0
        self.bits_written = 0
        self.closed = False

    def write_bits(self, n: int, value: int) -> None:
        """
        Append the low n bits of value, most significant first
        """
        if self.closed:
            raise ValueError("write to closed BitOutputStream")
        if n < 0:
            raise ValueError(f"bit count must be >= 0, got {n}")
        if n == 0:
            return

        self.acc = (self.acc << n) | (value & ((1 << n) - 1))
        self.acc_bits += n
        self.bits_written += n

        if self.acc_bits >= 8:
            full = self.acc_bits // 8
            self.acc_bits -= full * 8
            self.stream.write((self.acc >> self.acc_bits).to_bytes(full, "big"))
            self.acc &= (1 << self.acc_bits) - 1

    def flush(self) -> None:
        # zero-pad the partial byte
        if self.acc_bits:
            pad_bits = 8 - self.acc_bits
            self.stream.write(bytes([(self.acc << pad_bits) & 0xFF]))
            self.acc = 0
            self.acc_bits = 0
        self.stream.flush()

    def close(self) -> None:
        if self.closed:
            return
        try:
            self.flush()
        finally:
            self.closed = True
            if self.closefd:
                self.stream.close()

    def __enter__(self) -> "BitOutputStream":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
