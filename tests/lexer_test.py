import pytest

from errors import AsmSyntaxError
from lexer import tokenize_line, tokenize_source


def kinds(tokens):
    return [(t.type, t.value) for t in tokens]


def test_blank_and_comment_lines_are_empty():
    assert tokenize_line("") == []
    assert tokenize_line("   \t ") == []
    assert tokenize_line("; just a comment") == []
    assert tokenize_line("# also a comment") == []


def test_instruction_with_literals():
    assert kinds(tokenize_line("push 42")) == [("MNEMONIC", "push"), ("INT", 42)]
    assert kinds(tokenize_line("push -7")) == [("MNEMONIC", "push"), ("INT", -7)]
    assert kinds(tokenize_line("push 2.5")) == [("MNEMONIC", "push"), ("FLOAT", 2.5)]
    assert kinds(tokenize_line("push 12.")) == [("MNEMONIC", "push"), ("FLOAT", 12.0)]
    assert kinds(tokenize_line('push "a b; c"  ; trailing')) == [("MNEMONIC", "push"), ("STRING", "a b; c")]


def test_mnemonics_are_case_insensitive_labels_are_not():
    assert kinds(tokenize_line("PUSH 1")) == [("MNEMONIC", "push"), ("INT", 1)]
    assert kinds(tokenize_line("Loop:")) == [("LABEL", "Loop")]
    assert kinds(tokenize_line("jmp @Loop")) == [("MNEMONIC", "jmp"), ("LABEL_REF", "Loop")]


def test_label_followed_by_instruction():
    toks = tokenize_line("done: exit 3", line=9)
    assert kinds(toks) == [("LABEL", "done"), ("MNEMONIC", "exit"), ("INT", 3)]
    assert toks[1].line == 9
    assert toks[1].column == 7


def test_string_escapes():
    toks = tokenize_line(r'push "tab\there\n\"q\" A"')
    assert toks[1].value == 'tab\there\n"q" A'
    toks = tokenize_line("push 'it\\'s'")
    assert toks[1].value == "it's"


def test_unterminated_string():
    with pytest.raises(AsmSyntaxError) as exc:
        tokenize_line('push "oops', line=4)
    assert exc.value.line == 4
    assert exc.value.column == 6


def test_bare_identifier_operand_is_rejected():
    with pytest.raises(AsmSyntaxError) as exc:
        tokenize_line("jmp loop")
    assert "@loop" in exc.value.message


def test_unexpected_characters_and_bad_numbers():
    for text in ("push $1", "push 1.2.3", "push 12ab", "push @", "a: b: push 1", "42", '"x" push'):
        with pytest.raises(AsmSyntaxError):
            tokenize_line(text)


def test_integer_literal_range():
    assert tokenize_line("push 9223372036854775807")[1].value == 2 ** 63 - 1
    assert tokenize_line("push -9223372036854775808")[1].value == -(2 ** 63)
    with pytest.raises(AsmSyntaxError):
        tokenize_line("push 9223372036854775808")


@pytest.mark.parametrize("text", ["push ²", "push 1²", "push ٣", "push -٣"])
def test_only_ascii_digits_make_numbers(text):
    with pytest.raises(AsmSyntaxError):
        tokenize_line(text)


def test_float_literal_out_of_range():
    assert tokenize_line("push 1" + "0" * 300 + ".0")[1].value == 1e300
    with pytest.raises(AsmSyntaxError) as exc:
        tokenize_line("push " + "1" * 400 + ".0")
    assert "out of range" in exc.value.message


def test_tokenize_source_numbers_lines():
    lines = tokenize_source("push 1\n\nstart:\n  print\n")
    assert [len(toks) for toks in lines] == [2, 0, 1, 1]
    assert lines[3][0].line == 4
