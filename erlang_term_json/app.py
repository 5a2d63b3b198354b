import argparse
import os
import sys
from contextlib import closing
from typing import List, Union

from erlang_term_json.composer import JsonComposer
from erlang_term_json.config import check_max_depth, read_config
from erlang_term_json.decoder import decode
from erlang_term_json.errors import DecodeError
from erlang_term_json.source import StreamSource
from erlang_term_json.utils import check_endpoint_url, is_s3_url, open_s3_source


def decode_input(input_path: Union[str, None], max_depth: int, endpoint: Union[str, None] = None) -> str:
    composer = JsonComposer()
    if input_path is None or input_path == "-":
        decode(StreamSource(sys.stdin.buffer), composer, max_depth)
    elif is_s3_url(input_path):
        source = open_s3_source(input_path, endpoint)
        with closing(source.stream):
            decode(source, composer, max_depth)
    else:
        with open(input_path, "rb") as file_handle:
            decode(StreamSource(file_handle), composer, max_depth)
    return composer.getvalue()


def positive_int(value: str) -> int:
    return check_max_depth(int(value))


def main(argv: Union[List[str], None] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="erlang-term-json",
        description="Decode one Erlang external term format binary into JSON",
    )
    parser.add_argument(
        "input",
        nargs="?",
        default=None,
        help="File path, s3:// URL, or - for stdin (default: stdin)",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=os.path.abspath,  # type: ignore
        required=False,
        default=None,
        help="Config file (TOML)",
    )
    parser.add_argument("--max-depth", type=positive_int, required=False, help="Maximum nesting of compound terms")
    parser.add_argument("--s3-endpoint", type=check_endpoint_url, required=False, help="S3 endpoint URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print progress to stderr")
    args = parser.parse_args(argv)

    config = read_config(args.config)
    if args.input is not None:
        config["input"] = args.input
    if args.max_depth is not None:
        config["max_depth"] = args.max_depth
    if args.s3_endpoint is not None:
        config["s3_endpoint"] = args.s3_endpoint

    if args.verbose:
        print(f"Decoding {config['input'] or 'stdin'}", file=sys.stderr)
    try:
        text = decode_input(config["input"], config["max_depth"], config["s3_endpoint"])
    except DecodeError as err:
        if args.verbose and err.cause is not None:
            print(f"Caused by: {err.cause!r}", file=sys.stderr)
        print(f"Error: {err}")
        return 1
    print(text)
    return 0


def console_command() -> None:
    retcode = 1
    try:
        retcode = main()
    except Exception as err:  # pylint: disable=broad-exception-caught
        print(f"Error: {err}", file=sys.stderr)
    sys.exit(retcode)
