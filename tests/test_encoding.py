import pytest

from csvwriter.encoding import convert_encoding, is_valid_in
from csvwriter.errors import ErrorCode, UnsupportedEncoding
from csvwriter.rules import canonical_encoding
from csvwriter.writer import CSVWriter


@pytest.mark.parametrize(
    "label, codec",
    [("UTF-8", "utf_8"), ("utf8", "utf_8"), ("ISO-8859-1", "latin_1"), ("latin1", "latin_1"), ("cp1252", "cp1252")],
)
def test_canonical_encoding(label, codec):
    assert canonical_encoding(label) == codec


@pytest.mark.parametrize("label", ["BOGUS-ENCODING", "", "  ", None, 8])
def test_canonical_encoding_unknown(label):
    assert canonical_encoding(label) is None


def test_set_encodings_rejects_unknown_target():
    w = CSVWriter()
    with pytest.raises(UnsupportedEncoding) as exc:
        w.set_encodings("UTF-8", "BOGUS-ENCODING")

    err = exc.value
    assert err.code == ErrorCode.UNSUPPORTED_ENCODING
    assert err.message == "Unsupported encoding: BOGUS-ENCODING"
    assert err.details == {"encoding": "BOGUS-ENCODING"}
    assert w.get_encodings() == (None, None)


def test_set_encodings_rejects_unknown_source_first():
    with pytest.raises(UnsupportedEncoding) as exc:
        CSVWriter().set_encodings("NOPE", "ALSO-NOPE")
    assert exc.value.encoding == "NOPE"


def test_supported_encodings_can_be_injected():
    w = CSVWriter(supported_encodings={"utf_8"})
    w.set_encodings("UTF-8", "utf8")
    with pytest.raises(UnsupportedEncoding) as exc:
        w.set_encodings("UTF-8", "ISO-8859-1")
    assert exc.value.details == {"encoding": "ISO-8859-1"}


def test_render_converts_source_to_target():
    w = CSVWriter().set_encodings("ISO-8859-1", "UTF-8")
    w.add_line(["Paul", "Montréal"])

    assert w.render_bytes() == '"Paul","Montréal"'.encode("utf-8")
    assert w.render_csv() == '"Paul","Montréal"'


def test_render_leaves_text_already_in_target():
    # raw bytes that are valid UTF-8 must not be converted a second time
    w = CSVWriter().set_encodings("ISO-8859-1", "UTF-8")
    w.add_line([b"Montr\xc3\xa9al"])

    payload, report = w.render_report()
    assert payload == b'"Montr\xc3\xa9al"'
    assert report["already_target"] is True
    assert report["converted"] is False
    assert w.render_csv() == '"Montréal"'


def test_render_to_latin1_target_is_never_converted():
    # every byte string is valid ISO-8859-1, so detection always says "already target"
    w = CSVWriter().set_encodings("UTF-8", "ISO-8859-1").set_enclosure_rule(1)
    w.add_line(["é"])
    assert w.render_bytes() == "é".encode("utf-8")


def test_save_writes_target_encoding(tmp_path):
    out = tmp_path / "out.csv"
    w = CSVWriter(out).set_encodings("ISO-8859-1", "UTF-8")
    w.add_line(["ñ"])
    assert w.save() is True
    assert out.read_bytes() == '"ñ"\n'.encode("utf-8")


def test_render_with_encodings_is_idempotent():
    w = CSVWriter().set_encodings("ISO-8859-1", "UTF-8")
    w.add_line(["Zürich", 3])
    assert w.render_csv() == w.render_csv() == '"Zürich","3"'


def test_reset_config_disables_conversion():
    w = CSVWriter().set_encodings("ISO-8859-1", "UTF-8")
    w.add_line([b"Montr\xe9al"])
    assert w.render_csv() == '"Montréal"'

    w.reset_config()
    assert w.render_csv() == '"Montr\ufffdal"'


def test_is_valid_in():
    assert is_valid_in(b"abc", "ascii")
    assert not is_valid_in(b"\xe9", "utf_8")
    assert not is_valid_in(b"abc", "no-such-codec")


def test_convert_encoding_already_target():
    out, report = convert_encoding(b"plain", "latin_1", "utf_8")
    assert out == b"plain"
    assert report["already_target"] is True
    assert report["converted"] is False


def test_convert_encoding_unclassifiable_falls_back_to_source():
    out, report = convert_encoding(b"\xff\xfe abc", "utf_8", "ascii")
    assert out == b"?? abc"
    assert report["converted"] is True
    assert report["decode_fallback"] is True


def test_convert_encoding_replaces_unrepresentable():
    out, report = convert_encoding("naïve €".encode("utf-8"), "utf_8", "ascii")
    assert out == b"na?ve ?"
    assert report["decode_fallback"] is False


def test_canonical_encoding_accepts_utf8_sig():
    assert canonical_encoding("utf-8-sig") == "utf_8_sig"


@pytest.mark.parametrize("source", ["UTF-16", "UTF-32"])
def test_render_from_bom_source(source):
    w = CSVWriter().set_encodings(source, "UTF-8")
    w.add_line(["a", "b"])
    w.add_line(["c", "d"])
    assert w.render_csv() == '"a","b"\n"c","d"'
    assert w.render_bytes() == b'"a","b"\n"c","d"'


def test_render_from_bom_source_without_enclosure():
    w = CSVWriter().set_encodings("UTF-16", "UTF-8").set_enclosure_rule(1)
    w.add_line(["a", None, "b"])
    assert w.render_csv() == "a,,b"


def test_save_to_bom_target_writes_one_bom(tmp_path):
    out = tmp_path / "out.csv"
    w = CSVWriter(out).set_encodings("UTF-8", "UTF-16")
    w.add_line(["é"])
    w.add_line(["x"])

    assert w.render_csv() == '"é"\n"x"'
    assert w.save() is True

    data = out.read_bytes()
    assert data.decode("utf-16") == '"é"\n"x"\n'
    assert data.count(b"\xff\xfe") + data.count(b"\xfe\xff") == 1


def test_save_to_utf8_sig_target(tmp_path):
    out = tmp_path / "out.csv"
    w = CSVWriter(out).set_encodings("ISO-8859-1", "utf-8-sig")
    w.add_line(["Montréal"])

    assert w.render_csv() == '"Montréal"'
    assert w.save() is True
    assert out.read_bytes() == b"\xef\xbb\xbf" + '"Montréal"\n'.encode("utf-8")


def test_save_empty_buffer_to_bom_target(tmp_path):
    out = tmp_path / "out.csv"
    w = CSVWriter(out).set_encodings("UTF-8", "UTF-16")
    assert w.save() is True
    assert out.read_bytes().decode("utf-16") == "\n"
