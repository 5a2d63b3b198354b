import base64
import json
import struct
from typing import Callable, Dict, FrozenSet

from erlang_term_json.composer import Composer, JsonComposer, RawComposer, SkipComposer
from erlang_term_json.errors import DecodeError, ErrorKind
from erlang_term_json.source import ByteSource, bytes_source
from erlang_term_json.tags import (
    ATOM_TAGS,
    INTEGER_TAGS,
    LEGACY_FLOAT_SIZE,
    NEW_FUN_UNIQ_SIZE,
    PID_TAGS,
    SMALL_INTEGER_TAGS,
    VERSION,
    Tag,
)

DEFAULT_MAX_DEPTH = 128

Routine = Callable[[ByteSource, Composer, int], None]


def decode(source: ByteSource, composer: Composer, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
    if source.read_u8() != VERSION:
        raise DecodeError(ErrorKind.NOT_ERLANG_BINARY)
    try:
        _decode_any(source, composer, max_depth)
    except RecursionError as err:
        raise DecodeError(ErrorKind.TOO_DEEPLY_NESTED, err) from err


def binary_to_text(data: bytes, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    composer = JsonComposer()
    decode(bytes_source(data), composer, max_depth)
    return composer.getvalue()


def _decode_any(source: ByteSource, composer: Composer, budget: int) -> None:
    _decode_term(source.read_u8(), source, composer, budget)


def _decode_term(tag: int, source: ByteSource, composer: Composer, budget: int) -> None:
    if tag == Tag.NIL_EXT:
        return
    routine = _ROUTINES.get(tag)
    if routine is None:
        raise DecodeError(ErrorKind.NOT_IMPLEMENTED)
    routine(source, composer, budget)


def _descend(budget: int) -> int:
    # budget is the number of container levels still allowed below this one
    if budget <= 0:
        raise DecodeError(ErrorKind.TOO_DEEPLY_NESTED)
    return budget - 1


def _decode_filtered(allowed: FrozenSet[Tag], source: ByteSource, budget: int) -> str:
    tag = source.read_u8()
    if tag not in allowed:
        raise DecodeError(ErrorKind.NOT_ERLANG_BINARY)
    raw = RawComposer()
    _decode_term(tag, source, raw, budget)
    return raw.getvalue()


def _decode_atom_only(source: ByteSource, budget: int) -> str:
    return _decode_filtered(ATOM_TAGS, source, budget)


def _decode_rendered(source: ByteSource, budget: int) -> str:
    composer = JsonComposer()
    _decode_any(source, composer, budget)
    return composer.getvalue()


def _skip_terms(source: ByteSource, count: int, budget: int) -> None:
    skip = SkipComposer()
    for _ in range(count):
        _decode_any(source, skip, budget)


def _json_string(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _push_sequence(source: ByteSource, composer: Composer, arity: int, budget: int) -> None:
    composer.push("[")
    for idx in range(arity):
        if idx:
            composer.push(",")
        _decode_any(source, composer, budget)
    composer.push("]")


def _small_integer_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    composer.open("int")
    composer.push(str(source.read_u8()))
    composer.close()


def _integer_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    composer.open("int")
    composer.push(str(source.read_i32()))
    composer.close()


def _float_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    payload = source.read_exact(LEGACY_FLOAT_SIZE)
    composer.open("float")
    # NUL padding after the "%.20e" text is not part of the value
    composer.push(payload.rstrip(b"\x00").decode("latin-1"))
    composer.close()


def _new_float_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    value = struct.unpack(">d", source.read_exact(8))[0]
    composer.open("float")
    composer.push(repr(value))
    composer.close()


def _latin1_atom(length: int, source: ByteSource, composer: Composer) -> None:
    name = source.read_exact(length).decode("latin-1")
    composer.open("atom")
    composer.push(_json_string(name))
    composer.close()


def _utf8_atom(length: int, source: ByteSource, composer: Composer) -> None:
    payload = source.read_exact(length)
    try:
        name = payload.decode("utf-8")
    except UnicodeDecodeError as err:
        raise DecodeError(ErrorKind.NOT_UTF8_ATOM, err) from err
    composer.open("atom")
    composer.push(_json_string(name))
    composer.close()


def _atom_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    _latin1_atom(source.read_u16(), source, composer)


def _small_atom_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    _latin1_atom(source.read_u8(), source, composer)


def _atom_utf8_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    _utf8_atom(source.read_u16(), source, composer)


def _small_atom_utf8_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    _utf8_atom(source.read_u8(), source, composer)


def _atom_cache_ref(source: ByteSource, composer: Composer, budget: int) -> None:
    composer.open("acr")
    composer.push(str(source.read_u8()))
    composer.close()


def _string_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    payload = source.read_exact(source.read_u16())
    composer.open("str")
    composer.push("[" + ",".join(str(code) for code in payload) + "]")
    composer.close()


def _list_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    inner = _descend(budget)
    arity = source.read_u32()
    composer.open("list")
    _push_sequence(source, composer, arity, inner)
    if source.read_u8() != Tag.NIL_EXT:
        raise DecodeError(ErrorKind.INVALID_LIST_TERM)
    composer.close()


def _tuple(arity: int, source: ByteSource, composer: Composer, budget: int) -> None:
    inner = _descend(budget)
    composer.open("tuple")
    _push_sequence(source, composer, arity, inner)
    composer.close()


def _small_tuple_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    _tuple(source.read_u8(), source, composer, budget)


def _large_tuple_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    _tuple(source.read_u32(), source, composer, budget)


def _map_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    inner = _descend(budget)
    arity = source.read_u32()
    composer.open("map")
    composer.push("[")
    for idx in range(arity):
        if idx:
            composer.push(",")
        composer.push('{"key":')
        _decode_any(source, composer, inner)
        composer.push(',"val":')
        _decode_any(source, composer, inner)
        composer.push("}")
    composer.push("]")
    composer.close()


def _binary_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    payload = source.read_exact(source.read_u32())
    composer.open("bin")
    composer.push('"' + base64.b64encode(payload).decode("ascii") + '"')
    composer.close()


def _bit_binary_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    length = source.read_u32()
    bits = source.read_u8()
    payload = source.read_exact(length)
    composer.open("bitstr")
    composer.push(f'{{"bits":{bits},"data":"{base64.b64encode(payload).decode("ascii")}"}}')
    composer.close()


def _big(digits: int, source: ByteSource, composer: Composer) -> None:
    sign = source.read_u8()
    value = int.from_bytes(source.read_exact(digits), "little")
    if sign:
        value = -value
    composer.open("bigint")
    composer.push(str(value))
    composer.close()


def _small_big_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    _big(source.read_u8(), source, composer)


def _large_big_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    _big(source.read_u32(), source, composer)


def _node_id_creation(name: str, source: ByteSource, composer: Composer, budget: int) -> None:
    node = _decode_atom_only(source, budget)
    node_id = source.read_u32()
    creation = source.read_u8()
    composer.open(name)
    composer.push(f'{{"node":{node},"id":{node_id},"creation":{creation}}}')
    composer.close()


def _reference_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    _node_id_creation("ref", source, composer, budget)


def _port_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    _node_id_creation("port", source, composer, budget)


def _pid_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    node = _decode_atom_only(source, budget)
    pid_id = source.read_u32()
    serial = source.read_u32()
    creation = source.read_u8()
    composer.open("pid")
    composer.push(f'{{"node":{node},"id":{pid_id},"serial":{serial},"creation":{creation}}}')
    composer.close()


def _new_reference_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    id_words = source.read_u16()
    node = _decode_atom_only(source, budget)
    creation = source.read_u8()
    source.read_exact(4 * id_words)
    composer.open("newref")
    composer.push(f'{{"node":{node},"creation":{creation}}}')
    composer.close()


def _export_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    module = _decode_atom_only(source, budget)
    function = _decode_atom_only(source, budget)
    arity = _decode_filtered(SMALL_INTEGER_TAGS, source, budget)
    composer.open("expfun")
    composer.push(f'{{"m":{module},"f":{function},"a":{arity}}}')
    composer.close()


def _fun_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    inner = _descend(budget)
    num_free = source.read_u32()
    pid = _decode_rendered(source, inner)
    module = _decode_atom_only(source, inner)
    index = _decode_rendered(source, inner)
    uniq = _decode_rendered(source, inner)
    _skip_terms(source, num_free, inner)
    composer.open("fun")
    composer.push(f'{{"pid":{pid},"m":{module},"index":{index},"uniq":{uniq}}}')
    composer.close()


def _new_fun_ext(source: ByteSource, composer: Composer, budget: int) -> None:
    inner = _descend(budget)
    source.read_u32()  # total size, unused since every field is parsed
    arity = source.read_u8()
    uniq = source.read_exact(NEW_FUN_UNIQ_SIZE).hex()
    index = source.read_u32()
    num_free = source.read_u32()
    module = _decode_atom_only(source, inner)
    old_index = _decode_filtered(INTEGER_TAGS, source, inner)
    old_uniq = _decode_filtered(INTEGER_TAGS, source, inner)
    pid = _decode_filtered(PID_TAGS, source, inner)
    _skip_terms(source, num_free, inner)
    composer.open("newfun")
    composer.push(
        f'{{"m":{module},"a":{arity},"uniq":"{uniq}","index":{index},'
        f'"old_uniq":{old_uniq},"old_index":{old_index},"pid":{pid}}}'
    )
    composer.close()


_ROUTINES: Dict[int, Routine] = {
    Tag.LIST_EXT: _list_ext,
    Tag.STRING_EXT: _string_ext,
    Tag.INTEGER_EXT: _integer_ext,
    Tag.SMALL_INTEGER_EXT: _small_integer_ext,
    Tag.ATOM_EXT: _atom_ext,
    Tag.SMALL_ATOM_EXT: _small_atom_ext,
    Tag.SMALL_TUPLE_EXT: _small_tuple_ext,
    Tag.LARGE_TUPLE_EXT: _large_tuple_ext,
    Tag.BINARY_EXT: _binary_ext,
    Tag.FLOAT_EXT: _float_ext,
    Tag.SMALL_ATOM_UTF8_EXT: _small_atom_utf8_ext,
    Tag.ATOM_UTF8_EXT: _atom_utf8_ext,
    Tag.REFERENCE_EXT: _reference_ext,
    Tag.PORT_EXT: _port_ext,
    Tag.ATOM_CACHE_REF: _atom_cache_ref,
    Tag.PID_EXT: _pid_ext,
    Tag.MAP_EXT: _map_ext,
    Tag.FUN_EXT: _fun_ext,
    Tag.SMALL_BIG_EXT: _small_big_ext,
    Tag.LARGE_BIG_EXT: _large_big_ext,
    Tag.NEW_REFERENCE_EXT: _new_reference_ext,
    Tag.EXPORT_EXT: _export_ext,
    Tag.BIT_BINARY_EXT: _bit_binary_ext,
    Tag.NEW_FLOAT_EXT: _new_float_ext,
    Tag.NEW_FUN_EXT: _new_fun_ext,
}
