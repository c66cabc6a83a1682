# Operand shapes. Each opcode takes exactly one of these.
NO_OPERAND = "none"
VALUE = "value"              # push <literal>
TARGET = "target"            # jmp @label
OPT_VALUE = "opt_value"      # cmp [<literal>]
OPT_ADDRESS = "opt_address"  # load [<addr>], store [<addr>]
OPT_STATUS = "opt_status"    # exit [<int>]

OPCODES = {
    # stack
    "push": VALUE,
    "pop": NO_OPERAND,
    "dup": NO_OPERAND,
    "swap": NO_OPERAND,
    # arithmetic
    "add": NO_OPERAND,
    "sub": NO_OPERAND,
    "mul": NO_OPERAND,
    "div": NO_OPERAND,
    "idiv": NO_OPERAND,
    "mod": NO_OPERAND,
    # comparison / control flow
    "cmp": OPT_VALUE,
    "scmp": NO_OPERAND,
    "jmp": TARGET,
    "jeq": TARGET,
    "jne": TARGET,
    "jgt": TARGET,
    "jlt": TARGET,
    "jge": TARGET,
    "jle": TARGET,
    "jz": TARGET,
    "jnz": TARGET,
    "jneg": TARGET,
    "call": TARGET,
    "ret": NO_OPERAND,
    "exit": OPT_STATUS,
    # heap
    "store": OPT_ADDRESS,
    "load": OPT_ADDRESS,
    # conversions
    "atoi": NO_OPERAND,
    "itoa": NO_OPERAND,
    "itof": NO_OPERAND,
    "ftoi": NO_OPERAND,
    # builtins / io
    "print": NO_OPERAND,
    "read": NO_OPERAND,
    "rand": NO_OPERAND,
    "time": NO_OPERAND,
}

JUMP_OPCODES = frozenset(op for op, shape in OPCODES.items() if shape == TARGET)


class LabelRef:
    """Unresolved label operand; only exists between the two assembler passes."""

    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return f"@{self.name}"


class Instruction:
    __slots__ = ("opcode", "arg", "line", "column")

    def __init__(self, opcode, arg=None, line=None, column=None):
        self.opcode = opcode
        self.arg = arg
        self.line = line
        self.column = column

    def __repr__(self):
        return f"Instruction({self.opcode!r}, {self.arg!r}, line={self.line})"

    def __str__(self):
        if self.arg is None:
            return self.opcode
        if self.opcode in JUMP_OPCODES and isinstance(self.arg, int):
            return f"{self.opcode} -> {self.arg:04d}"
        return f"{self.opcode} {self.arg!r}"

    def __eq__(self, other):
        if not isinstance(other, Instruction):
            return NotImplemented
        return (self.opcode, self.arg) == (other.opcode, other.arg)


class Program:
    def __init__(self):
        self.instructions = []   # list of Instruction, indexed by ip
        self.labels = {}         # name -> instruction index

    def __len__(self):
        return len(self.instructions)

    def emit(self, opcode, arg=None, line=None, column=None):
        # returns instruction index (useful for jumps)
        self.instructions.append(Instruction(opcode, arg, line=line, column=column))
        return len(self.instructions) - 1

    def patch(self, index, arg):
        ins = self.instructions[index]
        self.instructions[index] = Instruction(ins.opcode, arg, line=ins.line, column=ins.column)

    def freeze(self):
        # no self-modifying code: the instruction stream is fixed once assembled
        self.instructions = tuple(self.instructions)
        return self

    def line_for(self, ip):
        if ip is None or ip < 0 or ip >= len(self.instructions):
            return None
        return self.instructions[ip].line

    def listing(self):
        lines = []
        if self.labels:
            lines.append("LABELS:")
            for name, index in sorted(self.labels.items(), key=lambda kv: (kv[1], kv[0])):
                lines.append(f"  {name}: {index:04d}")
            lines.append("")
        lines.append("INSTRUCTIONS:")
        for i, ins in enumerate(self.instructions):
            lines.append(f"  {i:04d}  {ins}")
        return "\n".join(lines)
