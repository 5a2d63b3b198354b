from erlang_term_json.composer import JsonComposer, RawComposer, SkipComposer


def compose(composer):
    composer.open("tuple")
    composer.push("[")
    composer.open("int")
    composer.push("1")
    composer.close()
    composer.push("]")
    composer.close()
    return composer


def test_json_composer():
    composer = compose(JsonComposer())
    assert composer.getvalue() == '{"tuple":[{"int":1}]}'
    assert str(composer) == composer.getvalue()


def test_raw_composer_drops_framing():
    composer = compose(RawComposer())
    assert composer.getvalue() == "[1]"
    assert str(composer) == "[1]"


def test_skip_composer():
    composer = compose(SkipComposer())
    assert not hasattr(composer, "parts")


def test_empty():
    assert JsonComposer().getvalue() == ""
    assert RawComposer().getvalue() == ""
