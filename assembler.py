from bytecode import (
    LabelRef,
    NO_OPERAND,
    OPCODES,
    OPT_ADDRESS,
    OPT_STATUS,
    OPT_VALUE,
    Program,
    TARGET,
    VALUE,
)
from errors import (
    ArityError,
    AsmSyntaxError,
    AssemblyFailed,
    DuplicateLabel,
    UndefinedLabel,
    UnknownMnemonic,
)
from lexer import tokenize_line

LITERAL_TOKENS = ("INT", "FLOAT", "STRING")

# process exit statuses are a single byte
MAX_EXIT_STATUS = 255


class Assembler:
    """Two-pass assembler.

    Pass 1 walks the source line by line, binding every label definition to
    the index of the next instruction and emitting one instruction per
    instruction line; label operands are left as LabelRef placeholders.
    Pass 2 replaces every placeholder with the resolved index.

    Errors are collected across both passes and raised together as one
    AssemblyFailed, so no partial Program is ever returned.
    """

    def __init__(self):
        self.program = Program()
        self.errors = []
        self.label_sites = {}  # name -> line of definition

    def assemble(self, source):
        # Pass 1: labels + instructions.
        for line_no, text in enumerate(source.splitlines(), start=1):
            try:
                tokens = tokenize_line(text, line=line_no)
            except AsmSyntaxError as e:
                self.errors.append(e)
                continue

            if not tokens:
                continue

            if tokens[0].type == "LABEL":
                self.define_label(tokens[0])
                tokens = tokens[1:]

            if tokens:
                self.emit_instruction(tokens[0], tokens[1:])

        # Pass 2: resolve label references to absolute indices.
        self.resolve_labels()

        if self.errors:
            self.errors.sort(key=lambda e: (e.line or 0, e.column or 0))
            raise AssemblyFailed(self.errors)

        return self.program.freeze()

    # -------- pass 1 --------
    def define_label(self, tok):
        name = tok.value
        if name in self.program.labels:
            first = self.label_sites.get(name)
            self.errors.append(DuplicateLabel(
                f"label '{name}' already defined at line {first}", tok.line, tok.column
            ))
            return
        self.program.labels[name] = len(self.program)
        self.label_sites[name] = tok.line

    def emit_instruction(self, head, operands):
        opcode = head.value
        shape = OPCODES.get(opcode)
        if shape is None:
            self.errors.append(UnknownMnemonic(f"unknown instruction: {opcode}", head.line, head.column))
            # keep instruction indices stable for the labels that follow
            self.program.emit(opcode, None, line=head.line, column=head.column)
            return

        try:
            arg = self.operand_for(opcode, shape, head, operands)
        except ArityError as e:
            self.errors.append(e)
            arg = None
        self.program.emit(opcode, arg, line=head.line, column=head.column)

    def operand_for(self, opcode, shape, head, operands):
        if len(operands) > 1:
            raise ArityError(
                f"{opcode} takes at most one operand, got {len(operands)}", head.line, operands[1].column
            )
        tok = operands[0] if operands else None

        if shape == NO_OPERAND:
            if tok is not None:
                raise ArityError(f"{opcode} takes no operand", tok.line, tok.column)
            return None

        if shape == VALUE:
            if tok is None:
                raise ArityError(f"{opcode} requires a literal operand", head.line, head.column)
            if tok.type not in LITERAL_TOKENS:
                raise ArityError(f"{opcode} expects a literal, got a label reference", tok.line, tok.column)
            return tok.value

        if shape == TARGET:
            if tok is None:
                raise ArityError(f"{opcode} requires a label operand (@name)", head.line, head.column)
            if tok.type != "LABEL_REF":
                raise ArityError(f"{opcode} expects a label reference, got {tok.value!r}", tok.line, tok.column)
            return LabelRef(tok.value)

        if tok is None:
            return None

        if shape == OPT_VALUE:
            if tok.type not in LITERAL_TOKENS:
                raise ArityError(f"{opcode} expects a literal, got a label reference", tok.line, tok.column)
            return tok.value

        if shape == OPT_ADDRESS:
            if tok.type != "INT" or tok.value < 0:
                raise ArityError(
                    f"{opcode} address must be a non-negative integer literal", tok.line, tok.column
                )
            return tok.value

        if shape == OPT_STATUS:
            if tok.type != "INT" or not 0 <= tok.value <= MAX_EXIT_STATUS:
                raise ArityError(
                    f"{opcode} status must be an integer literal in 0..{MAX_EXIT_STATUS}", tok.line, tok.column
                )
            return tok.value

        raise ValueError(f"unknown operand shape for {opcode}: {shape}")

    # -------- pass 2 --------
    def resolve_labels(self):
        for i, ins in enumerate(self.program.instructions):
            if not isinstance(ins.arg, LabelRef):
                continue
            name = ins.arg.name
            if name not in self.program.labels:
                self.errors.append(UndefinedLabel(f"undefined label: @{name}", ins.line, ins.column))
                continue
            self.program.patch(i, self.program.labels[name])


def assemble(source):
    return Assembler().assemble(source)
