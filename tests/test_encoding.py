import pytest

from unip2lenex.conversion import UnsupportedEncodingError, decode_unip, detect_xml_encoding
from unip2lenex.conversion.encoding import decode_xml, normalise_encoding


@pytest.mark.parametrize(
    ("declared", "expected"),
    [
        ("UTF-8", "utf-8"),
        ("utf8", "utf-8"),
        ("ISO-8859-1", "iso-8859-1"),
        ("iso_8859-1", "iso-8859-1"),
        ("Latin1", "iso-8859-1"),
        ("latin-1", "iso-8859-1"),
    ],
)
def test_detect_declared_encoding(declared, expected):
    data = f'<?xml version="1.0" encoding="{declared}"?><LENEX />'.encode("ascii")

    assert detect_xml_encoding(data) == expected


def test_missing_declaration_defaults_to_utf8():
    assert detect_xml_encoding(b"<LENEX />") == "utf-8"
    assert detect_xml_encoding(b"<?xml version='1.0'?><LENEX />") == "utf-8"


def test_unsupported_xml_encoding():
    data = b'<?xml version="1.0" encoding="windows-1252"?><LENEX />'

    with pytest.raises(UnsupportedEncodingError, match='Unsupported XML encoding "windows-1252"'):
        detect_xml_encoding(data)


def test_decode_xml_uses_declared_encoding():
    data = '<?xml version="1.0" encoding="ISO-8859-1"?><MEET name="Tromsø" />'.encode("iso-8859-1")

    assert 'name="Tromsø"' in decode_xml(data)


def test_decode_unip_with_selected_encoding():
    text = "Ålesund SK\n1,100,FR,Ås,Øyvind,,M90,1990\n"

    assert decode_unip(text.encode("iso-8859-1")) == text
    assert decode_unip(text.encode("utf-8"), "utf-8") == text
    assert decode_unip(text.encode("utf-8"), "iso-8859-1") != text


def test_decode_unip_rejects_unknown_encoding():
    with pytest.raises(UnsupportedEncodingError):
        decode_unip(b"Club", "cp1252")


def test_normalise_encoding():
    assert normalise_encoding(None) is None
    assert normalise_encoding(" UTF_8 ") == "utf-8"
    assert normalise_encoding("ascii") is None
