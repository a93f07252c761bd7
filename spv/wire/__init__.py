"""
Wire-level primitives: compact-size integers and block headers.
"""
from .varint import (
    MAX_VAR_INT,
    read_exact,
    var_int_size,
    serialize_var_int,
    write_var_int,
    read_var_int,
)
from .block_header import (
    BLOCK_HEADER_SIZE,
    BlockHeader,
)

__all__ = [
    "MAX_VAR_INT",
    "read_exact",
    "var_int_size",
    "serialize_var_int",
    "write_var_int",
    "read_var_int",
    "BLOCK_HEADER_SIZE",
    "BlockHeader",
]
