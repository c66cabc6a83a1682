import math

from errors import AsmSyntaxError

INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1

COMMENT_CHARS = ";#"
DIGITS = "0123456789"  # str.isdigit() also accepts e.g. '²'


class Token:
    def __init__(self, type, value=None, line=1, column=1):
        self.type = type
        self.value = value
        self.line = line
        self.column = column

    def __repr__(self):
        if self.value is not None:
            return f"{self.type}({self.value!r})"
        return f"{self.type}"


class Lexer:
    """Splits one source line into tokens.

    A line is empty (blank or comment only), a label definition, an
    instruction, or a label definition followed by an instruction:

        loop:
        push "hi"      ; comment
        done: jmp @loop

    Token types: LABEL, MNEMONIC, LABEL_REF, INT, FLOAT, STRING.
    """

    def __init__(self, text, line=1):
        self.text = text
        self.pos = 0
        self.current_char = text[0] if text else None
        self.line = line
        self.column = 1

    def advance(self):
        self.column += 1
        self.pos += 1
        if self.pos >= len(self.text):
            self.current_char = None
        else:
            self.current_char = self.text[self.pos]

    def peek(self):
        nxt = self.pos + 1
        if nxt >= len(self.text):
            return None
        return self.text[nxt]

    def peek_n(self, n):
        idx = self.pos + n
        if idx >= len(self.text):
            return None
        return self.text[idx]

    def error(self, message, column=None):
        return AsmSyntaxError(message, self.line, column if column is not None else self.column)

    def skip_whitespace(self):
        while self.current_char and self.current_char in " \t\r\n":
            self.advance()

    def read_name(self):
        result = ""
        while self.current_char and (self.current_char.isalnum() or self.current_char == "_"):
            result += self.current_char
            self.advance()
        return result

    def read_word(self):
        start_col = self.column
        name = self.read_name()
        if self.current_char == ":":
            self.advance()
            return Token("LABEL", name, line=self.line, column=start_col)
        return Token("MNEMONIC", name.lower(), line=self.line, column=start_col)

    def read_label_ref(self):
        start_col = self.column
        self.advance()  # skip '@'
        if not self.current_char or not (self.current_char.isalpha() or self.current_char == "_"):
            raise self.error("expected label name after '@'", start_col)
        name = self.read_name()
        return Token("LABEL_REF", name, line=self.line, column=start_col)

    def read_number(self):
        start_col = self.column
        result = ""
        if self.current_char in "+-":
            result += self.current_char
            self.advance()
        has_dot = False

        while self.current_char and (self.current_char in DIGITS or self.current_char == "."):
            if self.current_char == ".":
                if has_dot:
                    raise self.error(f"malformed number: {result}.", start_col)
                has_dot = True
            result += self.current_char
            self.advance()

        if self.current_char and (self.current_char.isalpha() or self.current_char == "_"):
            raise self.error(f"malformed number: {result}{self.current_char}", start_col)
        if result.lstrip("+-") in ("", "."):
            raise self.error(f"malformed number: {result}", start_col)

        if has_dot:
            # "12." is accepted as 12.0
            value = float(result)
            if math.isinf(value):
                raise self.error(f"float literal out of range: {result}", start_col)
            return Token("FLOAT", value, line=self.line, column=start_col)

        value = int(result)
        if value < INT_MIN or value > INT_MAX:
            raise self.error(f"integer literal out of 64-bit range: {result}", start_col)
        return Token("INT", value, line=self.line, column=start_col)

    def read_string(self):
        start_col = self.column
        quote = self.current_char  # ' or "
        self.advance()  # skip opening quote
        result = ""

        while self.current_char and self.current_char != quote:
            if self.current_char == "\\":
                self.advance()  # consume backslash
                if self.current_char is None:
                    break

                # \uXXXX -> unicode codepoint
                if self.current_char == "u":
                    hex_digits = [self.peek(), self.peek_n(2), self.peek_n(3), self.peek_n(4)]
                    if all(d is not None and d in "0123456789abcdefABCDEF" for d in hex_digits):
                        result += chr(int("".join(hex_digits), 16))
                        for _ in range(5):
                            self.advance()
                        continue

                esc = self.current_char
                if esc == "n":
                    result += "\n"
                elif esc == "t":
                    result += "\t"
                elif esc == "r":
                    result += "\r"
                elif esc == "0":
                    result += "\0"
                else:
                    # \\, \", \' and unknown escapes keep the character
                    result += esc
                self.advance()
                continue

            result += self.current_char
            self.advance()

        if self.current_char != quote:
            raise self.error("unterminated string literal", start_col)

        self.advance()  # skip closing quote
        return Token("STRING", result, line=self.line, column=start_col)

    def get_next_token(self):
        self.skip_whitespace()
        ch = self.current_char

        if ch is None or ch in COMMENT_CHARS:
            return None

        if ch.isalpha() or ch == "_":
            return self.read_word()

        if ch == "@":
            return self.read_label_ref()

        if ch in DIGITS or (ch == "." and self.peek() is not None and self.peek() in DIGITS):
            return self.read_number()

        if ch in "+-" and self.peek() is not None and (self.peek() in DIGITS or self.peek() == "."):
            return self.read_number()

        if ch in "\"'":
            return self.read_string()

        raise self.error(f"unexpected character: {ch!r}")

    def tokenize(self):
        tokens = []
        while True:
            tok = self.get_next_token()
            if tok is None:
                break
            tokens.append(tok)
        self.check_shape(tokens)
        return tokens

    def check_shape(self, tokens):
        rest = tokens
        if rest and rest[0].type == "LABEL":
            rest = rest[1:]
        if not rest:
            return

        head = rest[0]
        if head.type == "LABEL":
            raise self.error("only one label definition is allowed per line", head.column)
        if head.type != "MNEMONIC":
            raise self.error(f"expected a mnemonic, got {head.type} {head.value!r}", head.column)

        for tok in rest[1:]:
            if tok.type == "LABEL":
                raise self.error(f"label definition '{tok.value}:' must start the line", tok.column)
            if tok.type == "MNEMONIC":
                raise self.error(
                    f"cannot classify operand '{tok.value}' (label references are written '@{tok.value}')",
                    tok.column,
                )


def tokenize_line(text, line=1):
    return Lexer(text, line=line).tokenize()


def tokenize_source(source):
    """Tokenize a whole source text; returns one token list per line (1-based)."""
    return [tokenize_line(text, line=i) for i, text in enumerate(source.splitlines(), start=1)]
