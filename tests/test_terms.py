import pytest

from otp_packager.core.engine.terms import Atom, decode, encode, to_text, to_text_list
from otp_packager.core.errors import TermDecodeError


def test_encode_string_escapes_quotes_and_backslashes():
    assert encode('say "hi"\\now') == '"say \\"hi\\"\\\\now"'


def test_encode_string_escapes_control_characters():
    assert encode("a\nb\tc") == '"a\\nb\\tc"'


def test_encode_atom_quotes_only_when_needed():
    assert encode(Atom("kernel")) == "kernel"
    assert encode(Atom("My-App")) == "'My-App'"
    assert encode(Atom("it's")) == "'it\\'s'"
    # reserved words must be quoted to stay atoms
    assert encode(Atom("case")) == "'case'"


def test_encode_nested_structures():
    value = [(Atom("outdir"), "/tmp/x"), True, None, 3]
    assert encode(value) == '[{outdir, "/tmp/x"}, true, undefined, 3]'


def test_encode_rejects_unknown_types():
    with pytest.raises(TypeError):
        encode(object())


def test_decode_check_app_style_tuple():
    text = '{ok,[],"myapp","1.0.0",\n    ["myapp_sup","myapp_worker"],\n    ["kernel","stdlib"],\n    "omitted"}.\n'
    term = decode(text)
    assert term == ("ok", [], "myapp", "1.0.0", ["myapp_sup", "myapp_worker"], ["kernel", "stdlib"], "omitted")
    assert isinstance(term[0], Atom)


def test_decode_joins_adjacent_string_literals():
    assert decode('"first part "\n "second part"') == "first part second part"


def test_decode_quoted_atoms_and_escapes():
    assert decode("'hello world'") == Atom("hello world")
    assert decode('"tab\\there\\x{41}\\101"') == "tab\thereAA"


def test_decode_numbers_and_binaries():
    assert decode("[1, -2, 3.5, 16#ff]") == [1, -2, 3.5, 255]
    assert decode('<<"text">>') == "text"
    assert decode("<<1,2,3>>") == b"\x01\x02\x03"
    assert decode("<<>>") == ""


def test_decode_application_resource_file():
    text = """
    %% comment line
    {application, myapp,
     [{vsn, "1.2.3"},
      {modules, [myapp_sup]},
      {mod, {myapp_app, []}}]}.
    """
    term = decode(text)
    assert term[0] == "application"
    assert dict(term[2])["vsn"] == "1.2.3"
    assert dict(term[2])["mod"] == ("myapp_app", [])


@pytest.mark.parametrize("text", ["", "{ok,", "[1 2]", "{a} b", "[a|b]", "<0.1.0>"])
def test_decode_rejects_malformed_terms(text):
    with pytest.raises(TermDecodeError):
        decode(text)


def test_to_text_flattens_charlists_and_atoms():
    assert to_text([104, 105]) == "hi"
    assert to_text([]) == ""
    assert to_text(Atom("omitted")) == "omitted"
    assert to_text_list([Atom("a"), "b", [99]]) == ["a", "b", "c"]


def test_to_text_list_requires_a_list():
    with pytest.raises(TermDecodeError):
        to_text_list("abc")


def test_encoded_string_decodes_to_same_value():
    nasty = "quote \" backslash \\ newline \n end"
    assert decode(encode(nasty)) == nasty
