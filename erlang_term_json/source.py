import io
import struct
from typing import BinaryIO, Protocol

from erlang_term_json.errors import DecodeError, ErrorKind

# max bytes requested per underlying read, whatever length a term declares
CHUNK_SIZE = 65536


class ByteSource(Protocol):
    def read_u8(self) -> int: ...

    def read_u16(self) -> int: ...

    def read_u32(self) -> int: ...

    def read_i32(self) -> int: ...

    def read_exact(self, size: int) -> bytes: ...


class StreamSource:
    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.position = 0

    def read_exact(self, size: int) -> bytes:
        chunks = []
        remaining = size
        while remaining > 0:
            try:
                chunk = self.stream.read(min(remaining, CHUNK_SIZE))
            except OSError as err:
                raise DecodeError(ErrorKind.READ_ERROR, err) from err
            if not chunk:
                err = EOFError(f"expected {size} bytes at offset {self.position}, got {size - remaining}")
                raise DecodeError(ErrorKind.READ_ERROR, err) from err
            chunks.append(chunk)
            remaining -= len(chunk)
        self.position += size
        return b"".join(chunks)

    def read_u8(self) -> int:
        return self.read_exact(1)[0]

    def read_u16(self) -> int:
        return struct.unpack(">H", self.read_exact(2))[0]

    def read_u32(self) -> int:
        return struct.unpack(">I", self.read_exact(4))[0]

    def read_i32(self) -> int:
        return struct.unpack(">i", self.read_exact(4))[0]


def bytes_source(data: bytes) -> StreamSource:
    return StreamSource(io.BytesIO(data))
