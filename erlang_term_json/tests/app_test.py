import io
import os.path
import sys
import tempfile

import boto3
import pytest
from moto import mock_aws

from erlang_term_json.app import console_command, decode_input, main
from erlang_term_json.source import bytes_source

NESTED_LIST = b"\x83l\0\0\0\1l\0\0\0\1a\1jj"


@pytest.fixture(name="term_file")
def fixture_term_file():
    with tempfile.TemporaryDirectory() as temp_directory:
        filename = os.path.join(temp_directory, "term.bin")

        def write_term(data: bytes) -> str:
            with open(filename, "wb") as file_handle:
                file_handle.write(data)
            return filename

        yield write_term


@pytest.fixture(name="s3_client")
def fixture_s3_client(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    with mock_aws():
        s3_client = boto3.client("s3", region_name="us-east-1")
        s3_client.create_bucket(Bucket="test")
        yield s3_client


def set_stdin(monkeypatch, data: bytes) -> None:
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))


def test_decode_input_file(term_file):
    assert decode_input(term_file(b"\x83a\x05"), 8) == '{"int":5}'


def test_main_file(term_file, capsys):
    assert main([term_file(b"\x83l\0\0\0\2a\1a\2j")]) == 0
    assert capsys.readouterr().out == '{"list":[{"int":1},{"int":2}]}\n'


def test_main_error(term_file, capsys):
    assert main([term_file(b"\x83l\0\0\0\1a\1\xc8")]) == 1
    captured = capsys.readouterr()
    assert captured.out == "Error: InvalidListTerm\n"
    assert captured.err == ""


def test_main_wrong_version(term_file, capsys):
    assert main([term_file(b"\x82a\x05")]) == 1
    assert capsys.readouterr().out == "Error: NotErlangBinary\n"


def test_main_stdin(monkeypatch, capsys):
    set_stdin(monkeypatch, b"\x83w\x02ok")
    assert main([]) == 0
    assert capsys.readouterr().out == '{"atom":"ok"}\n'
    set_stdin(monkeypatch, b"\x83\xfa")
    assert main(["-"]) == 1
    assert capsys.readouterr().out == "Error: NotImplemented\n"


def test_main_s3(s3_client, capsys):
    s3_client.put_object(Bucket="test", Key="terms/int.bin", Body=b"\x83b\xff\xff\xff\xff")
    assert main(["s3://test/terms/int.bin"]) == 0
    assert capsys.readouterr().out == '{"int":-1}\n'


def test_main_s3_body_is_closed(monkeypatch, capsys):
    source = bytes_source(b"\x83a\x05")
    monkeypatch.setattr("erlang_term_json.app.open_s3_source", lambda path, endpoint: source)
    assert main(["s3://test/terms/int.bin"]) == 0
    assert capsys.readouterr().out == '{"int":5}\n'
    assert source.stream.closed

    source = bytes_source(b"\x83l\0\0\0\1a\1")
    monkeypatch.setattr("erlang_term_json.app.open_s3_source", lambda path, endpoint: source)
    assert main(["s3://test/terms/int.bin"]) == 1
    assert capsys.readouterr().out == "Error: ReadError\n"
    assert source.stream.closed


def test_main_declared_length_beyond_data(term_file, capsys):
    for data in (b"\x83m\xff\xff\xff\xff", b"\x83M\xff\xff\xff\xff\x03", b"\x83o\xff\xff\xff\xff\x00"):
        assert main([term_file(data)]) == 1
        assert capsys.readouterr().out == "Error: ReadError\n"


def test_main_max_depth(term_file, capsys):
    filename = term_file(NESTED_LIST)
    assert main([filename, "--max-depth", "1"]) == 1
    assert capsys.readouterr().out == "Error: TooDeeplyNested\n"
    assert main([filename, "--max-depth", "2"]) == 0
    assert capsys.readouterr().out == '{"list":[{"list":[{"int":1}]}]}\n'


def test_main_config(term_file, capsys):
    filename = term_file(NESTED_LIST)
    with tempfile.NamedTemporaryFile() as file_handle:
        file_handle.write(f'max_depth = 1\ninput = "{filename}"\n'.encode("utf-8"))
        file_handle.flush()
        assert main(["-c", file_handle.name]) == 1
        assert capsys.readouterr().out == "Error: TooDeeplyNested\n"
        assert main(["-c", file_handle.name, "--max-depth", "4"]) == 0
        assert capsys.readouterr().out == '{"list":[{"list":[{"int":1}]}]}\n'


def test_main_verbose(term_file, capsys):
    filename = term_file(b"\x83v\0\2\xff\xff")
    assert main([filename, "-v"]) == 1
    captured = capsys.readouterr()
    assert captured.out == "Error: NotUtf8Atom\n"
    assert f"Decoding {filename}" in captured.err
    assert "UnicodeDecodeError" in captured.err


def test_console_command(term_file, monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["erlang-term-json", term_file(b"\x83a\x05")])
    with pytest.raises(SystemExit) as exc:
        console_command()
    assert exc.value.code == 0
    assert capsys.readouterr().out == '{"int":5}\n'


def test_console_command_failure(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["erlang-term-json", "/random/path/shouldnt/exist.bin"])
    with pytest.raises(SystemExit) as exc:
        console_command()
    assert exc.value.code == 1
    assert capsys.readouterr().err.startswith("Error: ")


def test_main_max_depth_above_recursion_limit(term_file, capsys):
    filename = term_file(b"\x83" + b"l\0\0\0\1" * 5000 + b"a\1" + b"j" * 5000)
    assert main([filename, "--max-depth", "100000"]) == 1
    assert capsys.readouterr().out == "Error: TooDeeplyNested\n"
