from assembler import assemble
from errors import (
    CallStackOverflow,
    CallStackUnderflow,
    StackUnderflow,
    StepLimitExceeded,
    UninitializedFlag,
    VMRuntimeError,
)
from heap import Heap
from io_bridge import ConsoleIO
from values import arith, atoi, compare, format_value, ftoi, itoa, itof, parse_input

FLAG_UNSET = "Unset"
FLAG_EQUAL = "Equal"
FLAG_GREATER = "Greater"
FLAG_LESS = "Less"

_FLAG_FOR_ORDER = {0: FLAG_EQUAL, 1: FLAG_GREATER, -1: FLAG_LESS}

# conditional jump -> flags that take it
CONDITIONS = {
    "jeq": (FLAG_EQUAL,),
    "jne": (FLAG_GREATER, FLAG_LESS),
    "jgt": (FLAG_GREATER,),
    "jlt": (FLAG_LESS,),
    "jge": (FLAG_EQUAL, FLAG_GREATER),
    "jle": (FLAG_EQUAL, FLAG_LESS),
    "jz": (FLAG_EQUAL,),
    "jnz": (FLAG_GREATER, FLAG_LESS),
    "jneg": (FLAG_LESS,),
}

ARITH_OPS = ("add", "sub", "mul", "div", "idiv", "mod")

CONVERSIONS = {
    "atoi": atoi,
    "itoa": itoa,
    "itof": itof,
    "ftoi": ftoi,
}


class VM:
    def __init__(self, program, io=None):
        self.program = program
        self.instructions = program.instructions
        self.io = io if io is not None else ConsoleIO()

        self.MAX_CALL_DEPTH = 1000
        self.max_steps = None  # set to an int to guard against infinite loops
        self.trace_enabled = False

        self.ip = 0                 # instruction pointer (where we are)
        self.stack = []             # operand stack
        self.heap = Heap()
        self.flag = FLAG_UNSET      # result of the most recent comparison
        self.call_stack = []        # return addresses
        self.halted = False
        self.exit_status = None
        self.steps = 0

    def check_ip(self, target, context: str):
        # len(instructions) is the end-of-program address
        if not isinstance(target, int) or target < 0 or target > len(self.instructions):
            raise VMRuntimeError(f"Invalid jump target for {context}: {target!r}")

    def pop(self):
        if not self.stack:
            raise StackUnderflow("stack is empty")
        return self.stack.pop()

    def pop_pair(self, opcode):
        # (second, top); the stack is left untouched when it is too short
        if len(self.stack) < 2:
            raise StackUnderflow(f"{opcode} needs 2 values, stack has {len(self.stack)}")
        b = self.stack.pop()
        a = self.stack.pop()
        return a, b

    def set_flag(self, a, b):
        self.flag = _FLAG_FOR_ORDER[compare(a, b)]

    def halt(self, status: int = 0):
        self.halted = True
        self.exit_status = status

    def step(self) -> bool:
        """Execute one instruction. Returns True once the VM has halted."""
        if self.halted:
            return True
        if self.ip >= len(self.instructions):
            # running off the end is a normal exit
            self.halt(0)
            return True

        ins = self.instructions[self.ip]
        if self.trace_enabled:
            self.io.trace(f"TRACE ip={self.ip:04d} {ins} stack={len(self.stack)}")

        self.steps += 1
        try:
            self.execute(ins)
        except VMRuntimeError as e:
            self.halted = True
            if e.ip is None:
                e.ip = self.ip
                e.line = ins.line
            raise
        return self.halted

    def execute(self, ins):
        opcode = ins.opcode
        arg = ins.arg

        if opcode == "push":
            self.stack.append(arg)
            self.ip += 1
            return

        if opcode == "pop":
            self.pop()
            self.ip += 1
            return

        if opcode == "dup":
            if not self.stack:
                raise StackUnderflow("dup on an empty stack")
            self.stack.append(self.stack[-1])
            self.ip += 1
            return

        if opcode == "swap":
            if len(self.stack) < 2:
                raise StackUnderflow(f"swap needs 2 values, stack has {len(self.stack)}")
            self.stack[-1], self.stack[-2] = self.stack[-2], self.stack[-1]
            self.ip += 1
            return

        if opcode in ARITH_OPS:
            a, b = self.pop_pair(opcode)
            self.stack.append(arith(opcode, a, b))
            self.ip += 1
            return

        if opcode == "cmp":
            if arg is None:
                a, b = self.pop_pair(opcode)
                self.set_flag(a, b)
            else:
                # cmp <literal>: compare the top against the literal, keep the top
                a = self.pop()
                self.set_flag(a, arg)
                self.stack.append(a)
            self.ip += 1
            return

        if opcode == "scmp":
            if len(self.stack) < 2:
                raise StackUnderflow(f"scmp needs 2 values, stack has {len(self.stack)}")
            # top against second, unlike cmp
            self.set_flag(self.stack[-1], self.stack[-2])
            self.ip += 1
            return

        if opcode == "jmp":
            self.check_ip(arg, "jmp")
            self.ip = arg
            return

        if opcode in CONDITIONS:
            if self.flag == FLAG_UNSET:
                raise UninitializedFlag(f"{opcode} before any comparison")
            if self.flag in CONDITIONS[opcode]:
                self.check_ip(arg, opcode)
                self.ip = arg
            else:
                self.ip += 1
            return

        if opcode == "call":
            if len(self.call_stack) >= self.MAX_CALL_DEPTH:
                raise CallStackOverflow(f"max call depth exceeded ({self.MAX_CALL_DEPTH})")
            self.check_ip(arg, "call")
            self.call_stack.append(self.ip + 1)
            self.ip = arg
            return

        if opcode == "ret":
            if not self.call_stack:
                raise CallStackUnderflow("ret with an empty call stack")
            target = self.call_stack.pop()
            self.check_ip(target, "ret")
            self.ip = target
            return

        if opcode == "exit":
            self.halt(arg if arg is not None else 0)
            return

        if opcode == "store":
            if arg is None:
                address, value = self.pop_pair(opcode)
            else:
                address, value = arg, self.pop()
            self.heap.store(address, value)
            self.ip += 1
            return

        if opcode == "load":
            address = arg if arg is not None else self.pop()
            self.stack.append(self.heap.load(address))
            self.ip += 1
            return

        if opcode in CONVERSIONS:
            value = self.pop()
            self.stack.append(CONVERSIONS[opcode](value))
            self.ip += 1
            return

        if opcode == "print":
            value = self.pop()
            self.io.write(format_value(value) + "\n")
            self.ip += 1
            return

        if opcode == "read":
            line = self.io.read_line()
            self.stack.append(parse_input(line))
            self.ip += 1
            return

        if opcode == "rand":
            self.stack.append(self.io.next_random())
            self.ip += 1
            return

        if opcode == "time":
            self.stack.append(self.io.now())
            self.ip += 1
            return

        raise VMRuntimeError(f"Unknown opcode: {opcode}")

    def run(self) -> int:
        """Run until halted; returns the exit status. Runtime errors propagate."""
        while not self.halted:
            if self.max_steps is not None and self.steps >= self.max_steps:
                self.halted = True
                raise StepLimitExceeded(
                    f"step limit of {self.max_steps} exceeded (possible infinite loop)",
                    ip=self.ip,
                    line=self.program.line_for(self.ip),
                )
            self.step()
        return self.exit_status


def run_source(source, io=None, max_steps=None, trace=False):
    """Assemble and run a source text; returns the finished VM."""
    program = assemble(source)
    vm = VM(program, io=io)
    vm.max_steps = max_steps
    vm.trace_enabled = trace
    vm.run()
    return vm
