from enum import IntEnum

VERSION = 131


class Tag(IntEnum):
    NEW_FLOAT_EXT = 70
    BIT_BINARY_EXT = 77
    ATOM_CACHE_REF = 82
    SMALL_INTEGER_EXT = 97
    INTEGER_EXT = 98
    FLOAT_EXT = 99
    ATOM_EXT = 100
    REFERENCE_EXT = 101
    PORT_EXT = 102
    PID_EXT = 103
    SMALL_TUPLE_EXT = 104
    LARGE_TUPLE_EXT = 105
    NIL_EXT = 106
    STRING_EXT = 107
    LIST_EXT = 108
    BINARY_EXT = 109
    SMALL_BIG_EXT = 110
    LARGE_BIG_EXT = 111
    NEW_FUN_EXT = 112
    EXPORT_EXT = 113
    NEW_REFERENCE_EXT = 114
    SMALL_ATOM_EXT = 115
    MAP_EXT = 116
    FUN_EXT = 117
    ATOM_UTF8_EXT = 118
    SMALL_ATOM_UTF8_EXT = 119


ATOM_TAGS = frozenset(
    {
        Tag.SMALL_ATOM_UTF8_EXT,
        Tag.ATOM_UTF8_EXT,
        Tag.ATOM_CACHE_REF,
        Tag.ATOM_EXT,
        Tag.SMALL_ATOM_EXT,
    }
)
INTEGER_TAGS = frozenset({Tag.INTEGER_EXT, Tag.SMALL_INTEGER_EXT})
SMALL_INTEGER_TAGS = frozenset({Tag.SMALL_INTEGER_EXT})
PID_TAGS = frozenset({Tag.PID_EXT})

# legacy FLOAT_EXT payload is a fixed width, NUL padded "%.20e" string
LEGACY_FLOAT_SIZE = 31
NEW_FUN_UNIQ_SIZE = 16
