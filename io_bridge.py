import random
import sys
import time

from errors import EndOfInput

# rand pushes an Integer in [0, RAND_LIMIT)
RAND_LIMIT = 2 ** 31


class IOBridge:
    """
    Everything the VM needs from the outside world.

      - write(text)        -> output for `print`
      - read_line() -> str -> one input line for `read`, raises EndOfInput when exhausted
      - next_random() -> int
      - now() -> float     -> seconds since the Unix epoch
      - trace(text)        -> diagnostic output (trace mode)

    Randomness comes from a private random.Random so two bridges created with
    the same seed produce the same sequence.
    """

    def __init__(self, seed=None, clock=None):
        self.rng = random.Random(seed)
        self.clock = clock or time.time

    def write(self, text: str) -> None:
        raise NotImplementedError

    def read_line(self) -> str:
        raise NotImplementedError

    def trace(self, text: str) -> None:
        raise NotImplementedError

    def next_random(self) -> int:
        return self.rng.randrange(RAND_LIMIT)

    def now(self) -> float:
        return float(self.clock())


class ConsoleIO(IOBridge):
    def __init__(self, stdin=None, stdout=None, stderr=None, seed=None, clock=None):
        super().__init__(seed=seed, clock=clock)
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr

    def write(self, text: str) -> None:
        self.stdout.write(text)
        self.stdout.flush()

    def read_line(self) -> str:
        line = self.stdin.readline()
        if line == "":
            raise EndOfInput("no more input")
        return line.rstrip("\r\n")

    def trace(self, text: str) -> None:
        print(text, file=self.stderr)


class BufferedIO(IOBridge):
    """In-memory bridge: scripted input lines in, collected output out."""

    def __init__(self, inputs=None, seed=None, clock=None):
        super().__init__(seed=seed, clock=clock)
        self.inputs = list(inputs or [])
        self.output = []
        self.traces = []

    def write(self, text: str) -> None:
        self.output.append(text)

    def read_line(self) -> str:
        if not self.inputs:
            raise EndOfInput("no more input")
        return str(self.inputs.pop(0))

    def trace(self, text: str) -> None:
        self.traces.append(text)

    @property
    def text(self) -> str:
        return "".join(self.output)

    def lines(self):
        return self.text.splitlines()
