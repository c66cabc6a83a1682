class EvilStackError(Exception):
    pass


# -------- assembly time --------

class AssemblyError(EvilStackError):
    kind = "AssemblyError"

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def format(self) -> str:
        if self.line is None:
            return f"{self.kind}: {self.message}"
        if self.column is None:
            return f"{self.line}: {self.kind}: {self.message}"
        return f"{self.line}:{self.column}: {self.kind}: {self.message}"

    def __str__(self) -> str:
        return self.format()


class AsmSyntaxError(AssemblyError):
    kind = "SyntaxError"


class UnknownMnemonic(AssemblyError):
    kind = "UnknownMnemonic"


class ArityError(AssemblyError):
    kind = "ArityError"


class DuplicateLabel(AssemblyError):
    kind = "DuplicateLabel"


class UndefinedLabel(AssemblyError):
    kind = "UndefinedLabel"


class AssemblyFailed(EvilStackError):
    """Every error collected while assembling one source text, in source order."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__(f"assembly failed with {len(self.errors)} error(s)")

    def format(self, indent: str = "") -> str:
        lines = [f"{indent}Assembly failed ({len(self.errors)} error(s)):"]
        for err in self.errors:
            lines.append(f"{indent}  {err.format()}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()


# -------- run time --------

class VMRuntimeError(EvilStackError):
    kind = "RuntimeError"

    def __init__(self, message: str, ip: int | None = None, line: int | None = None):
        super().__init__(message)
        self.message = message
        self.ip = ip
        self.line = line

    def format(self, indent: str = "") -> str:
        lines = [f"{indent}Runtime error: {self.kind}: {self.message}"]
        if self.ip is not None:
            loc = f"{indent}  ip={self.ip:04d}"
            if self.line is not None:
                loc += f" (line {self.line})"
            lines.append(loc)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()


class StackUnderflow(VMRuntimeError):
    kind = "StackUnderflow"


class OperandTypeError(VMRuntimeError):
    kind = "TypeError"


class DivisionByZero(VMRuntimeError):
    kind = "DivisionByZero"


class ConversionError(VMRuntimeError):
    kind = "ConversionError"


class UninitializedFlag(VMRuntimeError):
    kind = "UninitializedFlag"


class CallStackUnderflow(VMRuntimeError):
    kind = "CallStackUnderflow"


class CallStackOverflow(VMRuntimeError):
    kind = "CallStackOverflow"


class UnmappedAddress(VMRuntimeError):
    kind = "UnmappedAddress"


class EndOfInput(VMRuntimeError):
    kind = "EndOfInput"


class StepLimitExceeded(VMRuntimeError):
    kind = "StepLimitExceeded"
